"""
Ticket raster compositing.
"""

# Standard Library
import concurrent.futures
import dataclasses
import io
import pathlib
import xml.etree.ElementTree as StdElementTree

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

# local repo modules
import ticket_keepsake.codes
import ticket_keepsake.config
import ticket_keepsake.models
import ticket_keepsake.svg_lib
import ticket_keepsake.text_flow


TemplateInfo = ticket_keepsake.models.TemplateInfo
TemplateRegions = ticket_keepsake.models.TemplateRegions
Ticket = ticket_keepsake.models.Ticket
TicketLine = ticket_keepsake.models.TicketLine
TextRegion = ticket_keepsake.models.TextRegion
BarcodeRegion = ticket_keepsake.models.BarcodeRegion
QRCodeRegion = ticket_keepsake.models.QRCodeRegion
RenderConfig = ticket_keepsake.config.RenderConfig
TextFlowResult = ticket_keepsake.text_flow.TextFlowResult

DEFAULT_TEXT_COLOR = ticket_keepsake.config.DEFAULT_TEXT_COLOR
PROGRESS_BAR_WIDTH = ticket_keepsake.config.PROGRESS_BAR_WIDTH
PROGRESS_UPDATE_EVERY = ticket_keepsake.config.PROGRESS_UPDATE_EVERY
WHITE = (255, 255, 255, 255)


@dataclasses.dataclass
class TemplateLayout:
	template: TemplateInfo
	regions: TemplateRegions
	backdrop: PIL.Image.Image
	scale: float


@dataclasses.dataclass
class RenderedTicket:
	"""
	A ticket paired with its finished raster.

	image is None when the ticket's template is not loaded.
	"""
	ticket: Ticket
	image: PIL.Image.Image | None


class FontBook:
	"""
	Cache of PIL fonts by size and weight.
	"""

	def __init__(self, regular_path: str, bold_path: str) -> None:
		self.regular_path = regular_path
		self.bold_path = bold_path
		self._fonts: dict[tuple[float, bool], PIL.ImageFont.ImageFont] = {}

	#============================================
	def get_font(self, size: float, bold: bool) -> PIL.ImageFont.ImageFont:
		"""
		Get a font, loading it on first use.

		Falls back to the Pillow default font when the TrueType file cannot
		be found.

		Args:
			size: Font size in raster px.
			bold: Bold flag.

		Returns:
			PIL font.
		"""
		key = (round(size, 3), bold)
		font = self._fonts.get(key)
		if font is not None:
			return font
		path = self.bold_path if bold else self.regular_path
		try:
			font = PIL.ImageFont.truetype(path, size)
		except OSError:
			font = PIL.ImageFont.load_default(size=size)
		self._fonts[key] = font
		return font

	#============================================
	def measure(self, text: str, size: float, bold: bool) -> float:
		return self.get_font(size, bold).getlength(text)


#============================================
def build_font_book(config: RenderConfig) -> FontBook:
	return FontBook(config.font_regular, config.font_bold)


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def compute_raster_size(template: TemplateInfo, scale: float) -> tuple[int, int]:
	"""
	Compute the raster size of a template.

	Args:
		template: Template info with width/height in cm.
		scale: Physical-to-raster scale in px/cm.

	Returns:
		Tuple of (width_px, height_px), at least 1 px each.
	"""
	width = max(1, int(round(template.width * scale)))
	height = max(1, int(round(template.height * scale)))
	return (width, height)


#============================================
def render_backdrop(svg_content: str | bytes, size: tuple[int, int]) -> PIL.Image.Image:
	"""
	Rasterize SVG markup to an RGBA image of a fixed size.

	Args:
		svg_content: SVG markup.
		size: Output (width, height) in px.

	Returns:
		RGBA image on a white background.
	"""
	# cairo is loaded on first use
	import cairosvg

	if isinstance(svg_content, str):
		svg_content = svg_content.encode("utf-8")
	png_bytes = cairosvg.svg2png(
		bytestring=svg_content,
		output_width=size[0],
		output_height=size[1],
	)
	image = PIL.Image.open(io.BytesIO(png_bytes))
	image.load()
	background = PIL.Image.new("RGBA", image.size, WHITE)
	background.alpha_composite(image.convert("RGBA"))
	return background


#============================================
def build_template_layout(
	template: TemplateInfo,
	svg_content: str | bytes,
	config: RenderConfig,
	backdrop: PIL.Image.Image | None = None,
) -> TemplateLayout:
	"""
	Parse regions and rasterize the backdrop of one template.

	Args:
		template: Template info.
		svg_content: Template SVG markup.
		config: Render configuration.
		backdrop: Optional pre-rendered backdrop; resized to the raster size.

	Returns:
		TemplateLayout reused for every ticket of this template.
	"""
	regions = ticket_keepsake.svg_lib.parse_template_regions(svg_content)
	size = compute_raster_size(template, config.scale)
	if backdrop is None:
		backdrop = render_backdrop(svg_content, size)
	else:
		backdrop = backdrop.convert("RGBA")
		if backdrop.size != size:
			backdrop = backdrop.resize(size, PIL.Image.Resampling.LANCZOS)
	return TemplateLayout(
		template=template,
		regions=regions,
		backdrop=backdrop,
		scale=config.scale,
	)


#============================================
def build_template_layouts(
	templates: list[TemplateInfo],
	svg_contents: dict[str, str | bytes],
	config: RenderConfig,
) -> dict[str, TemplateLayout]:
	"""
	Build layouts for a template catalog.

	A template without markup, or whose markup cannot be parsed or
	rasterized, is left out so its tickets are skipped later.

	Args:
		templates: Template catalog.
		svg_contents: SVG markup by template id.
		config: Render configuration.

	Returns:
		TemplateLayout by template id.
	"""
	layouts: dict[str, TemplateLayout] = {}
	for template in templates:
		svg_content = svg_contents.get(template.id)
		if not svg_content:
			print(f"WARNING: no SVG markup for template {template.id}")
			continue
		try:
			layouts[template.id] = build_template_layout(template, svg_content, config)
		except (StdElementTree.ParseError, ValueError, OSError) as error:
			print(f"WARNING: template {template.id} could not be loaded: {error}")
	return layouts


#============================================
def draw_text_region(
	canvas: PIL.Image.Image,
	region: TextRegion,
	lines: list[TicketLine],
	config: RenderConfig,
	font_book: FontBook,
) -> TextFlowResult:
	"""
	Flow and draw ticket lines into the text region.

	Args:
		canvas: RGBA ticket canvas, modified in place.
		region: Text region in cm.
		lines: Ticket lines.
		config: Render configuration.
		font_book: Font cache used for measuring and drawing.

	Returns:
		TextFlowResult describing what was drawn.
	"""
	result = ticket_keepsake.text_flow.flow_text_lines(
		region,
		lines,
		font_book.measure,
		config.scale,
		font_scale=ticket_keepsake.config.render_config_font_scale(config),
		min_font_size=config.min_font_size,
		side_margin=config.line_side_margin,
	)
	draw = PIL.ImageDraw.Draw(canvas)
	for run in result.runs:
		font = font_book.get_font(run.font_size, run.bold)
		# default anchor: x is the left edge, y the ascender line
		draw.text((run.x, run.y), run.text, font=font, fill=DEFAULT_TEXT_COLOR)
	return result


#============================================
def composite_ticket(
	layout: TemplateLayout,
	ticket: Ticket,
	config: RenderConfig,
	font_book: FontBook | None = None,
) -> PIL.Image.Image:
	"""
	Composite one ticket onto its template backdrop.

	Regions are drawn in the order the template declares them, so a code
	region layered over or under the text region keeps that stacking.

	Args:
		layout: Template layout.
		ticket: Ticket data; not modified.
		config: Render configuration.
		font_book: Optional shared font cache.

	Returns:
		Finished RGBA raster.
	"""
	if font_book is None:
		font_book = build_font_book(config)
	canvas = layout.backdrop.copy()
	barcode_options = layout.template.barcode_options
	for region in layout.regions.ordered_regions():
		if isinstance(region, TextRegion):
			draw_text_region(canvas, region, ticket.lines, config, font_book)
		elif isinstance(region, BarcodeRegion):
			ticket_keepsake.codes.draw_barcode(
				canvas,
				region,
				ticket.barcode,
				barcode_options,
				config.scale,
			)
		elif isinstance(region, QRCodeRegion):
			ticket_keepsake.codes.draw_qrcode(
				canvas,
				region,
				ticket.qrcode,
				config.scale,
				error_correction=config.qr_error_correction,
			)
		else:
			raise TypeError(f"Unsupported region: {region!r}")
	return canvas


#============================================
def render_tickets(
	tickets: list[Ticket],
	layouts: dict[str, TemplateLayout],
	config: RenderConfig,
	verbose: bool = False,
) -> list[RenderedTicket]:
	"""
	Render a raster for every ticket whose template is known.

	Tickets are independent, so with config.workers > 1 they are composited
	in a thread pool. Each ticket keeps its own entry, so tickets sharing
	an id never replace each other.

	Args:
		tickets: Tickets in print order.
		layouts: TemplateLayout by template id.
		config: Render configuration.
		verbose: Print a progress bar.

	Returns:
		One RenderedTicket per input ticket, in input order. Tickets with an
		unknown template have no image.
	"""
	entries = [RenderedTicket(ticket=ticket, image=None) for ticket in tickets]
	renderable: list[RenderedTicket] = []
	for entry in entries:
		if entry.ticket.template_type not in layouts:
			print(f"WARNING: ticket {entry.ticket.id} uses unknown template {entry.ticket.template_type}")
			continue
		renderable.append(entry)

	total = len(renderable)
	if verbose and total > 0:
		print_progress("Tickets", 0, total)

	if config.workers > 1:
		def render_one(entry: RenderedTicket) -> PIL.Image.Image:
			# one font cache per task; FreeType faces are not shared across threads
			return composite_ticket(layouts[entry.ticket.template_type], entry.ticket, config)

		with concurrent.futures.ThreadPoolExecutor(max_workers=config.workers) as executor:
			images = executor.map(render_one, renderable)
			for index, (entry, image) in enumerate(zip(renderable, images), start=1):
				entry.image = image
				if verbose and (index % PROGRESS_UPDATE_EVERY == 0 or index == total):
					print_progress("Tickets", index, total)
	else:
		font_book = build_font_book(config)
		for index, entry in enumerate(renderable, start=1):
			layout = layouts[entry.ticket.template_type]
			entry.image = composite_ticket(layout, entry.ticket, config, font_book)
			if verbose and (index % PROGRESS_UPDATE_EVERY == 0 or index == total):
				print_progress("Tickets", index, total)
	if verbose and total > 0:
		print()
	return entries


#============================================
def sanitize_token(value: str) -> str:
	"""
	Sanitize a string for filenames.

	Args:
		value: Input string.

	Returns:
		Sanitized string.
	"""
	result: list[str] = []
	for char in value:
		if char.isalnum():
			result.append(char)
		else:
			result.append("_")
	sanitized = "".join(result).strip("_")
	if not sanitized:
		return "ticket"
	return sanitized


#============================================
def write_ticket_tiles(
	rendered: list[RenderedTicket],
	output_dir: pathlib.Path,
) -> list[dict[str, str]]:
	"""
	Write one PNG tile per rendered ticket.

	The running index in the file name keeps tiles of tickets that share an
	id apart. Tickets without an image are left out.

	Args:
		rendered: Rendered tickets in print order.
		output_dir: Output directory.

	Returns:
		List of tile metadata dictionaries.
	"""
	output_dir.mkdir(parents=True, exist_ok=True)
	tiles: list[dict[str, str]] = []
	images = [entry for entry in rendered if entry.image is not None]
	for index, entry in enumerate(images, start=1):
		tile_name = f"{index:03d}_{sanitize_token(entry.ticket.id)}.png"
		tile_path = output_dir / tile_name
		entry.image.save(tile_path, format="PNG")
		tiles.append(
			{
				"id": entry.ticket.id,
				"path": str(tile_path),
				"width": str(entry.image.width),
				"height": str(entry.image.height),
			}
		)
	return tiles
