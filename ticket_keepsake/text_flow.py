"""
Text line layout inside a template text region.
"""

# Standard Library
import dataclasses
import typing

# local repo modules
import ticket_keepsake.config
import ticket_keepsake.models


TextRegion = ticket_keepsake.models.TextRegion
TicketLine = ticket_keepsake.models.TicketLine

DEFAULT_TEXT_MIN_SIZE = ticket_keepsake.config.DEFAULT_TEXT_MIN_SIZE
DEFAULT_LINE_SIDE_MARGIN = ticket_keepsake.config.DEFAULT_LINE_SIDE_MARGIN

# measure(text, font_size_px, bold) -> rendered width in raster px
MeasureFunc = typing.Callable[[str, float, bool], float]


@dataclasses.dataclass(frozen=True)
class TextRun:
	text: str
	x: float
	y: float
	font_size: float
	bold: bool


@dataclasses.dataclass
class TextFlowResult:
	runs: list[TextRun]
	cursor_y: float
	skipped_lines: int = 0


#============================================
def single_line_text(text: str) -> str:
	"""
	Replace line breaks with spaces so a ticket line draws as one line.
	"""
	return text.replace("\r", " ").replace("\n", " ")


#============================================
def resolve_line_margins(
	line: TicketLine,
	side_margin: float = DEFAULT_LINE_SIDE_MARGIN,
) -> tuple[float, float, float, float]:
	"""
	Resolve a line's margins, filling in absent values.

	Absent top and bottom margins are 0. Absent left and right margins use
	the side margin default.

	Args:
		line: Ticket line.
		side_margin: Default left/right margin in cm.

	Returns:
		Tuple of (top, right, bottom, left) in cm.
	"""
	top = line.margin_top if line.margin_top is not None else 0.0
	bottom = line.margin_bottom if line.margin_bottom is not None else 0.0
	right = line.margin_right if line.margin_right is not None else side_margin
	left = line.margin_left if line.margin_left is not None else side_margin
	return (top, right, bottom, left)


#============================================
def compute_line_x(
	align: str,
	region_left: float,
	region_right: float,
	margin_left: float,
	margin_right: float,
	text_width: float,
) -> float:
	"""
	Compute the draw x for a line of text.

	Args:
		align: One of "left", "center", "right".
		region_left: Region left edge in raster px.
		region_right: Region right edge in raster px.
		margin_left: Left margin in raster px.
		margin_right: Right margin in raster px.
		text_width: Rendered text width in raster px.

	Returns:
		Draw x in raster px.
	"""
	normalized = align.strip().lower()
	if normalized == "center":
		available_width = (region_right - region_left) - margin_left - margin_right
		return region_left + margin_left + (available_width - text_width) / 2.0
	if normalized == "right":
		return region_right - margin_right - text_width
	return region_left + margin_left


#============================================
def flow_text_lines(
	region: TextRegion | None,
	lines: list[TicketLine],
	measure: MeasureFunc,
	scale: float,
	font_scale: float = 1.0,
	min_font_size: float = DEFAULT_TEXT_MIN_SIZE,
	side_margin: float = DEFAULT_LINE_SIDE_MARGIN,
) -> TextFlowResult:
	"""
	Lay out ticket lines top to bottom inside the text region.

	Every line reserves its full height, even when it is empty or does not
	fit above the region bottom, so later lines never move when an earlier
	line overflows. Lines that do not fit are left out of the runs.

	Args:
		region: Text region in cm, or None.
		lines: Ordered ticket lines.
		measure: Text width measurement callable.
		scale: Physical-to-raster scale in px/cm.
		font_scale: Raster px per font size unit.
		min_font_size: Font size floor.
		side_margin: Default left/right margin in cm.

	Returns:
		TextFlowResult with placed runs and the final cursor.
	"""
	if region is None:
		return TextFlowResult(runs=[], cursor_y=0.0)

	region_left = region.x * scale
	region_top = region.y * scale
	region_right = (region.x + region.width) * scale
	region_bottom = (region.y + region.height) * scale

	runs: list[TextRun] = []
	skipped = 0
	cursor_y = region_top
	for line in lines:
		margin_top, margin_right, margin_bottom, margin_left = resolve_line_margins(line, side_margin)
		font_size = max(min_font_size, line.font_size) * font_scale
		y = cursor_y + margin_top * scale
		text = single_line_text(line.text)
		if text:
			text_width = measure(text, font_size, line.bold)
			x = compute_line_x(
				line.align,
				region_left,
				region_right,
				margin_left * scale,
				margin_right * scale,
				text_width,
			)
			if y + font_size <= region_bottom:
				runs.append(TextRun(text=text, x=x, y=y, font_size=font_size, bold=line.bold))
			else:
				skipped += 1
		cursor_y = y + font_size + margin_bottom * scale
	return TextFlowResult(runs=runs, cursor_y=cursor_y, skipped_lines=skipped)
