"""
Shared configuration and constants.
"""

import dataclasses


CM_PER_INCH = 2.54
CSS_DPI = 96.0
# CSS pixels per centimeter: 96 / 2.54
CSS_SCALE = CSS_DPI / CM_PER_INCH
DEFAULT_OVERSAMPLE = 3.0

# A4 portrait, in cm
DEFAULT_PAGE_WIDTH = 21.0
DEFAULT_PAGE_HEIGHT = 29.7
DEFAULT_SIDE_MARGIN = 0.5
DEFAULT_TOP_MARGIN = 0.5
DEFAULT_TICKET_SPACING = 0.5
DEFAULT_CUT_LINE_WIDTH = 0.01
DEFAULT_CUT_LINE_GRAY = 150

DEFAULT_FONT_REGULAR = "DejaVuSans.ttf"
DEFAULT_FONT_BOLD = "DejaVuSans-Bold.ttf"
DEFAULT_FONT_SIZE = 10.5
DEFAULT_TEXT_MIN_SIZE = 8.0
DEFAULT_TEXT_COLOR = (0, 0, 0, 255)
DEFAULT_LINE_SIDE_MARGIN = 0.2

BARCODE_FORMAT = "code128"
BARCODE_WIDTH_RATIO = 0.8
BARCODE_MARGIN = 0.0
BARCODE_DISPLAY_VALUE = True
DEFAULT_BARCODE_BAR_WIDTH = 2.0
DEFAULT_BARCODE_FONT_SIZE = 20.0
DEFAULT_BARCODE_TEXT_MARGIN = 2.0

QRCODE_MARGIN = 0
DEFAULT_QR_ERROR_CORRECTION = "M"

PROGRESS_BAR_WIDTH = 20
PROGRESS_UPDATE_EVERY = 10


@dataclasses.dataclass
class RenderConfig:
	scale: float
	min_font_size: float
	line_side_margin: float
	qr_error_correction: str
	font_regular: str
	font_bold: str
	workers: int


@dataclasses.dataclass
class PageConfig:
	page_width: float
	page_height: float
	side_margin: float
	top_margin: float
	spacing: float
	cut_line_width: float
	cut_line_gray: int


@dataclasses.dataclass
class ImpositionResult:
	total_tickets: int
	placed_tickets: int
	skipped_tickets: int
	pages: int
	placements: list = dataclasses.field(default_factory=list)
	skipped_ids: list = dataclasses.field(default_factory=list)


#============================================
def render_config_font_scale(config: RenderConfig) -> float:
	"""
	Ratio of raster pixels to CSS pixels for a render config.
	"""
	return config.scale / CSS_SCALE


#============================================
def default_render_config(oversample: float = DEFAULT_OVERSAMPLE) -> RenderConfig:
	"""
	Build the default render configuration.

	Args:
		oversample: Multiplier applied to the CSS scale.

	Returns:
		RenderConfig.
	"""
	return RenderConfig(
		scale=CSS_SCALE * oversample,
		min_font_size=DEFAULT_TEXT_MIN_SIZE,
		line_side_margin=DEFAULT_LINE_SIDE_MARGIN,
		qr_error_correction=DEFAULT_QR_ERROR_CORRECTION,
		font_regular=DEFAULT_FONT_REGULAR,
		font_bold=DEFAULT_FONT_BOLD,
		workers=1,
	)


#============================================
def default_page_config() -> PageConfig:
	"""
	Build the A4 page configuration preset.
	"""
	return PageConfig(
		page_width=DEFAULT_PAGE_WIDTH,
		page_height=DEFAULT_PAGE_HEIGHT,
		side_margin=DEFAULT_SIDE_MARGIN,
		top_margin=DEFAULT_TOP_MARGIN,
		spacing=DEFAULT_TICKET_SPACING,
		cut_line_width=DEFAULT_CUT_LINE_WIDTH,
		cut_line_gray=DEFAULT_CUT_LINE_GRAY,
	)
