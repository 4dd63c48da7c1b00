"""
Barcode and QR code generation and placement inside template regions.
"""

# Standard Library
import dataclasses
import math

# PIP3 modules
import barcode
import barcode.writer
import PIL.Image
import qrcode
import qrcode.constants

# local repo modules
import ticket_keepsake.config
import ticket_keepsake.models


BarcodeRegion = ticket_keepsake.models.BarcodeRegion
QRCodeRegion = ticket_keepsake.models.QRCodeRegion
BarcodeOptions = ticket_keepsake.models.BarcodeOptions

CM_PER_INCH = ticket_keepsake.config.CM_PER_INCH
CSS_DPI = ticket_keepsake.config.CSS_DPI
BARCODE_FORMAT = ticket_keepsake.config.BARCODE_FORMAT
BARCODE_WIDTH_RATIO = ticket_keepsake.config.BARCODE_WIDTH_RATIO
BARCODE_MARGIN = ticket_keepsake.config.BARCODE_MARGIN
BARCODE_DISPLAY_VALUE = ticket_keepsake.config.BARCODE_DISPLAY_VALUE
DEFAULT_BARCODE_BAR_WIDTH = ticket_keepsake.config.DEFAULT_BARCODE_BAR_WIDTH
DEFAULT_BARCODE_FONT_SIZE = ticket_keepsake.config.DEFAULT_BARCODE_FONT_SIZE
DEFAULT_BARCODE_TEXT_MARGIN = ticket_keepsake.config.DEFAULT_BARCODE_TEXT_MARGIN
QRCODE_MARGIN = ticket_keepsake.config.QRCODE_MARGIN
DEFAULT_QR_ERROR_CORRECTION = ticket_keepsake.config.DEFAULT_QR_ERROR_CORRECTION

MM_PER_CSS_PX = 25.4 / CSS_DPI
PT_PER_CSS_PX = 0.75
QR_BOX_SIZE = 10
TRANSPARENT = (0, 0, 0, 0)

QR_ERROR_CORRECTION_LEVELS = {
	"L": qrcode.constants.ERROR_CORRECT_L,
	"M": qrcode.constants.ERROR_CORRECT_M,
	"Q": qrcode.constants.ERROR_CORRECT_Q,
	"H": qrcode.constants.ERROR_CORRECT_H,
}


@dataclasses.dataclass(frozen=True)
class CodePlacement:
	x: float
	y: float
	width: float
	height: float
	fit_scale: float


#============================================
def has_payload(value: str | None) -> bool:
	"""
	Check whether a code value has non-whitespace content.
	"""
	return bool(value and value.strip())


#============================================
def compute_barcode_placement(
	region: BarcodeRegion,
	raw_width: float,
	raw_height: float,
	scale: float,
) -> CodePlacement | None:
	"""
	Fit a generated barcode into its region and center it.

	The barcode may use only part of the region width; the height may use
	all of it. The smaller of the two scales wins so the image keeps its
	aspect ratio. Coordinates are in the rotated frame of the region.

	Args:
		region: Barcode region in cm.
		raw_width: Generated barcode width in px.
		raw_height: Generated barcode height in px.
		scale: Physical-to-raster scale in px/cm.

	Returns:
		CodePlacement in raster px, or None for an empty image.
	"""
	if raw_width <= 0 or raw_height <= 0:
		return None
	region_x = region.x * scale
	region_y = region.y * scale
	region_width = region.width * scale
	region_height = region.height * scale

	scale_x = (region_width * BARCODE_WIDTH_RATIO) / raw_width
	scale_y = region_height / raw_height
	fit_scale = min(scale_x, scale_y)

	scaled_width = raw_width * fit_scale
	scaled_height = raw_height * fit_scale
	return CodePlacement(
		x=region_x + (region_width - scaled_width) / 2.0,
		y=region_y + (region_height - scaled_height) / 2.0,
		width=scaled_width,
		height=scaled_height,
		fit_scale=fit_scale,
	)


#============================================
def compute_qr_placement(region: QRCodeRegion, scale: float) -> CodePlacement:
	"""
	Size a QR code to the short side of its region and center it.

	Args:
		region: QR region in cm.
		scale: Physical-to-raster scale in px/cm.

	Returns:
		CodePlacement in raster px.
	"""
	region_x = region.x * scale
	region_y = region.y * scale
	region_width = region.width * scale
	region_height = region.height * scale
	# centered on the whole-pixel size the image is resized to
	size = float(int(round(min(region_width, region_height))))
	return CodePlacement(
		x=region_x + (region_width - size) / 2.0,
		y=region_y + (region_height - size) / 2.0,
		width=size,
		height=size,
		fit_scale=1.0,
	)


#============================================
def build_barcode_writer_options(
	region: BarcodeRegion,
	options: BarcodeOptions | None,
	scale: float,
) -> dict:
	"""
	Build python-barcode ImageWriter options for a region.

	The writer dpi matches the raster resolution, so bar widths given in
	CSS px grow with oversampling. Format, text display and margin are
	fixed and cannot be overridden by template options.

	Args:
		region: Barcode region in cm.
		options: Template barcode styling, or None.
		scale: Physical-to-raster scale in px/cm.

	Returns:
		Writer options dictionary.
	"""
	if options is None:
		options = BarcodeOptions()
	bar_width = options.width if options.width is not None else DEFAULT_BARCODE_BAR_WIDTH
	font_size = options.font_size if options.font_size is not None else DEFAULT_BARCODE_FONT_SIZE
	text_margin = options.text_margin
	if text_margin is None:
		text_margin = DEFAULT_BARCODE_TEXT_MARGIN

	writer_options = {
		"dpi": max(1, int(round(scale * CM_PER_INCH))),
		"module_width": bar_width * MM_PER_CSS_PX,
		"module_height": region.height * 10.0,
		"font_size": max(1, int(round(font_size * PT_PER_CSS_PX))),
		"text_distance": text_margin * MM_PER_CSS_PX,
		"quiet_zone": BARCODE_MARGIN,
		"write_text": BARCODE_DISPLAY_VALUE,
	}
	if options.background:
		writer_options["background"] = options.background
	if options.line_color:
		writer_options["foreground"] = options.line_color
	if options.font_path:
		writer_options["font_path"] = options.font_path
	return writer_options


#============================================
def generate_barcode_image(value: str, writer_options: dict) -> PIL.Image.Image:
	"""
	Render a CODE128 barcode to a PIL image.

	Args:
		value: Barcode payload.
		writer_options: ImageWriter options.

	Returns:
		Generated image.
	"""
	barcode_class = barcode.get_barcode_class(BARCODE_FORMAT)
	code = barcode_class(value, writer=barcode.writer.ImageWriter())
	return code.render(writer_options=writer_options)


#============================================
def resolve_error_correction(level: str) -> int:
	"""
	Map an error correction letter to the qrcode constant.

	Args:
		level: One of L, M, Q, H.

	Returns:
		qrcode error correction constant.
	"""
	normalized = level.strip().upper()
	if normalized not in QR_ERROR_CORRECTION_LEVELS:
		raise ValueError(f"Unknown QR error correction level: {level!r}")
	return QR_ERROR_CORRECTION_LEVELS[normalized]


#============================================
def generate_qr_image(value: str, size: int, error_correction: str) -> PIL.Image.Image:
	"""
	Render a square QR code with no quiet zone.

	Args:
		value: QR payload.
		size: Output edge length in px.
		error_correction: Error correction letter.

	Returns:
		Square RGBA image of the requested size.
	"""
	qr = qrcode.QRCode(
		error_correction=resolve_error_correction(error_correction),
		box_size=QR_BOX_SIZE,
		border=QRCODE_MARGIN,
	)
	qr.add_data(value)
	qr.make(fit=True)
	image = qr.make_image(fill_color="black", back_color="white").convert("RGBA")
	return image.resize((size, size), PIL.Image.Resampling.NEAREST)


#============================================
def composite_at(
	canvas: PIL.Image.Image,
	image: PIL.Image.Image,
	x: float,
	y: float,
	rotation: float = 0.0,
) -> None:
	"""
	Composite an image onto the canvas inside a rotated frame.

	The frame is rotated about the canvas origin, as an SVG rotate()
	transform without a center point does. (x, y) is the image top-left
	corner in that rotated frame.

	Args:
		canvas: RGBA canvas, modified in place.
		image: RGBA image to place.
		x: Left edge in the rotated frame, raster px.
		y: Top edge in the rotated frame, raster px.
		rotation: Frame rotation in degrees.
	"""
	if rotation % 360.0 == 0.0:
		layer = PIL.Image.new("RGBA", canvas.size, TRANSPARENT)
		layer.paste(image, (int(round(x)), int(round(y))))
		canvas.alpha_composite(layer)
		return
	radians = math.radians(rotation)
	cos_value = math.cos(radians)
	sin_value = math.sin(radians)
	# inverse mapping: canvas pixel -> source image pixel
	data = (
		cos_value, sin_value, -x,
		-sin_value, cos_value, -y,
	)
	layer = image.transform(
		canvas.size,
		PIL.Image.Transform.AFFINE,
		data,
		resample=PIL.Image.Resampling.BICUBIC,
		fillcolor=TRANSPARENT,
	)
	canvas.alpha_composite(layer)


#============================================
def draw_barcode(
	canvas: PIL.Image.Image,
	region: BarcodeRegion | None,
	value: str | None,
	options: BarcodeOptions | None,
	scale: float,
) -> bool:
	"""
	Draw a barcode into its region.

	Empty values leave the region untouched. Generation errors are reported
	and the region is left blank.

	Args:
		canvas: RGBA ticket canvas, modified in place.
		region: Barcode region in cm, or None.
		value: Barcode payload.
		options: Template barcode styling.
		scale: Physical-to-raster scale in px/cm.

	Returns:
		True if a barcode was drawn.
	"""
	if region is None or not has_payload(value):
		return False
	if region.width <= 0.0 or region.height <= 0.0:
		return False
	writer_options = build_barcode_writer_options(region, options, scale)
	try:
		raw_image = generate_barcode_image(value, writer_options)
	except Exception as error:
		print(f"WARNING: barcode generation failed for {value!r}: {error}")
		return False

	placement = compute_barcode_placement(region, raw_image.width, raw_image.height, scale)
	if placement is None:
		return False
	target_size = (
		max(1, int(round(placement.width))),
		max(1, int(round(placement.height))),
	)
	scaled = raw_image.convert("RGBA").resize(target_size, PIL.Image.Resampling.LANCZOS)
	composite_at(canvas, scaled, placement.x, placement.y, region.rotation)
	return True


#============================================
def draw_qrcode(
	canvas: PIL.Image.Image,
	region: QRCodeRegion | None,
	value: str | None,
	scale: float,
	error_correction: str = DEFAULT_QR_ERROR_CORRECTION,
) -> bool:
	"""
	Draw a QR code into its region.

	Returns only after the QR image is fully generated and composited.

	Args:
		canvas: RGBA ticket canvas, modified in place.
		region: QR region in cm, or None.
		value: QR payload.
		scale: Physical-to-raster scale in px/cm.
		error_correction: Error correction letter.

	Returns:
		True if a QR code was drawn.
	"""
	if region is None or not has_payload(value):
		return False
	placement = compute_qr_placement(region, scale)
	size = int(round(placement.width))
	if size < 1:
		return False
	try:
		qr_image = generate_qr_image(value, size, error_correction)
	except Exception as error:
		print(f"WARNING: QR code generation failed for {value!r}: {error}")
		return False
	composite_at(canvas, qr_image, placement.x, placement.y)
	return True
