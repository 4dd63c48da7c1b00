"""
Shelf packing of ticket rasters onto printable pages.
"""

# Standard Library
import dataclasses
import io
import json
import pathlib

# PIP3 modules
import PIL.Image
import reportlab.lib.units
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import ticket_keepsake.config
import ticket_keepsake.models
import ticket_keepsake.render


TemplateInfo = ticket_keepsake.models.TemplateInfo
RenderedTicket = ticket_keepsake.render.RenderedTicket
PageConfig = ticket_keepsake.config.PageConfig
RenderConfig = ticket_keepsake.config.RenderConfig
ImpositionResult = ticket_keepsake.config.ImpositionResult

CM = reportlab.lib.units.cm


@dataclasses.dataclass
class PackItem:
	ticket_id: str
	image: PIL.Image.Image
	width: float
	height: float


@dataclasses.dataclass(frozen=True)
class Placement:
	ticket_id: str
	page_index: int
	x: float
	y: float
	width: float
	height: float


@dataclasses.dataclass
class PackingCursor:
	"""
	Position of the next item during one packing run.

	page_items counts items already placed on the current page. A page with
	no items never overflows, so an item taller than the printable area is
	placed at the top of its own page. A plain height check would open a
	new page before it and leave that page blank.
	"""
	x: float
	y: float
	row_max_height: float = 0.0
	page_index: int = 0
	page_items: int = 0


#============================================
def build_pack_items(
	rendered: list[RenderedTicket],
	templates: dict[str, TemplateInfo],
) -> tuple[list[PackItem], list[str]]:
	"""
	Pair rendered tickets with their physical sizes.

	Each entry carries its own raster, so tickets sharing an id stay
	distinct. Entries whose template is unknown or that have no raster are
	left out; they never reach the packer.

	Args:
		rendered: Rendered tickets in print order.
		templates: TemplateInfo by template id.

	Returns:
		Tuple of (pack items in input order, skipped ticket ids).
	"""
	items: list[PackItem] = []
	skipped: list[str] = []
	for entry in rendered:
		template = templates.get(entry.ticket.template_type)
		if template is None or entry.image is None:
			skipped.append(entry.ticket.id)
			continue
		items.append(
			PackItem(
				ticket_id=entry.ticket.id,
				image=entry.image,
				width=template.width,
				height=template.height,
			)
		)
	return (items, skipped)


#============================================
def new_cursor(config: PageConfig) -> PackingCursor:
	return PackingCursor(x=config.side_margin, y=config.top_margin)


#============================================
def advance_cursor(
	cursor: PackingCursor,
	width: float,
	height: float,
	config: PageConfig,
) -> tuple[float, float, int]:
	"""
	Place one item at the cursor and advance it.

	The row wrap check runs before the page overflow check. A page that has
	no items yet never overflows, so an item taller than the printable area
	is placed at the top of its page instead of opening blank pages.

	Args:
		cursor: Packing cursor, modified in place.
		width: Item width in cm.
		height: Item height in cm.
		config: Page configuration.

	Returns:
		Tuple of (x, y, page_index) for the item.
	"""
	if cursor.x + width > config.page_width - config.side_margin:
		cursor.x = config.side_margin
		cursor.y += cursor.row_max_height + config.spacing
		cursor.row_max_height = 0.0

	if cursor.y + height > config.page_height - config.top_margin and cursor.page_items > 0:
		cursor.page_index += 1
		cursor.page_items = 0
		cursor.y = config.top_margin
		cursor.x = config.side_margin
		cursor.row_max_height = 0.0

	position = (cursor.x, cursor.y, cursor.page_index)
	cursor.row_max_height = max(cursor.row_max_height, height)
	cursor.x += width + config.spacing
	cursor.page_items += 1
	return position


#============================================
def pack_items(items: list[PackItem], config: PageConfig) -> list[Placement]:
	"""
	Greedy shelf packing in input order.

	Args:
		items: Items in print order.
		config: Page configuration.

	Returns:
		One placement per item, in the same order.
	"""
	cursor = new_cursor(config)
	placements: list[Placement] = []
	for item in items:
		x, y, page_index = advance_cursor(cursor, item.width, item.height, config)
		placements.append(
			Placement(
				ticket_id=item.ticket_id,
				page_index=page_index,
				x=x,
				y=y,
				width=item.width,
				height=item.height,
			)
		)
	return placements


#============================================
def draw_cut_guide(
	pdf: reportlab.pdfgen.canvas.Canvas,
	placement: Placement,
	config: PageConfig,
) -> None:
	"""
	Draw a hairline cut guide around a placed ticket.

	Args:
		pdf: ReportLab canvas.
		placement: Ticket placement in cm, top-left origin.
		config: Page configuration.
	"""
	gray = config.cut_line_gray / 255.0
	bottom = config.page_height - placement.y - placement.height
	pdf.saveState()
	pdf.setLineWidth(config.cut_line_width * CM)
	pdf.setStrokeColorRGB(gray, gray, gray)
	pdf.rect(
		placement.x * CM,
		bottom * CM,
		placement.width * CM,
		placement.height * CM,
		stroke=1,
		fill=0,
	)
	pdf.restoreState()


#============================================
def write_print_document(
	items: list[PackItem],
	placements: list[Placement],
	output: pathlib.Path | io.BytesIO,
	config: PageConfig,
) -> int:
	"""
	Write placed ticket rasters to a PDF.

	Args:
		items: Pack items, parallel to placements.
		placements: Placements from pack_items.
		output: Output PDF path or binary buffer.
		config: Page configuration.

	Returns:
		Number of pages written.
	"""
	if isinstance(output, pathlib.Path):
		output = str(output)
	pdf = reportlab.pdfgen.canvas.Canvas(
		output,
		pagesize=(config.page_width * CM, config.page_height * CM),
	)
	current_page = 0
	for item, placement in zip(items, placements):
		while placement.page_index > current_page:
			pdf.showPage()
			current_page += 1
		bottom = config.page_height - placement.y - placement.height
		pdf.drawImage(
			reportlab.lib.utils.ImageReader(item.image),
			placement.x * CM,
			bottom * CM,
			width=placement.width * CM,
			height=placement.height * CM,
			mask="auto",
			preserveAspectRatio=False,
			anchor="sw",
		)
		draw_cut_guide(pdf, placement, config)
	pdf.showPage()
	pdf.save()
	return current_page + 1


#============================================
def impose_tickets(
	rendered: list[RenderedTicket],
	templates: dict[str, TemplateInfo],
	output: pathlib.Path | io.BytesIO,
	config: PageConfig,
) -> ImpositionResult:
	"""
	Pack ticket rasters onto pages and write the print document.

	Args:
		rendered: Rendered tickets in print order.
		templates: TemplateInfo by template id.
		output: Output PDF path or binary buffer.
		config: Page configuration.

	Returns:
		ImpositionResult with placements.
	"""
	items, skipped = build_pack_items(rendered, templates)
	for ticket_id in skipped:
		print(f"WARNING: ticket {ticket_id} skipped (no template or raster)")
	placements = pack_items(items, config)
	pages = write_print_document(items, placements, output, config)
	return ImpositionResult(
		total_tickets=len(rendered),
		placed_tickets=len(placements),
		skipped_tickets=len(skipped),
		pages=pages,
		placements=placements,
		skipped_ids=skipped,
	)


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	inputs: list[pathlib.Path],
	result: ImpositionResult,
	page_config: PageConfig,
	render_config: RenderConfig,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		inputs: Input JSON files.
		result: Imposition result.
		page_config: Page configuration.
		render_config: Render configuration.
	"""
	data = {
		"inputs": [str(path) for path in inputs],
		"total_tickets": result.total_tickets,
		"placed_tickets": result.placed_tickets,
		"skipped_tickets": result.skipped_tickets,
		"skipped_ids": result.skipped_ids,
		"pages": result.pages,
		"placements": [dataclasses.asdict(placement) for placement in result.placements],
		"layout": dataclasses.asdict(page_config),
		"render": {
			"scale": render_config.scale,
			"min_font_size": render_config.min_font_size,
			"line_side_margin": render_config.line_side_margin,
			"qr_error_correction": render_config.qr_error_correction,
		},
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
