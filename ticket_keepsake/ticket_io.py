"""
JSON import and export of tickets and template catalogs.
"""

# Standard Library
import json
import pathlib
import uuid

# local repo modules
import ticket_keepsake.config
import ticket_keepsake.models


Ticket = ticket_keepsake.models.Ticket
TicketLine = ticket_keepsake.models.TicketLine
TemplateInfo = ticket_keepsake.models.TemplateInfo
BarcodeOptions = ticket_keepsake.models.BarcodeOptions

DEFAULT_FONT_SIZE = ticket_keepsake.config.DEFAULT_FONT_SIZE
ALIGNMENTS = ("left", "center", "right")

# wire key -> dataclass field
LINE_MARGIN_KEYS = {
	"marginTop": "margin_top",
	"marginRight": "margin_right",
	"marginBottom": "margin_bottom",
	"marginLeft": "margin_left",
}
BARCODE_OPTION_KEYS = {
	"width": "width",
	"fontSize": "font_size",
	"textMargin": "text_margin",
	"background": "background",
	"lineColor": "line_color",
	"font": "font_path",
}


#============================================
def new_id() -> str:
	return str(uuid.uuid4())


#============================================
def create_default_line() -> TicketLine:
	"""
	Create an empty line with default styling and zero margins.
	"""
	return TicketLine(
		id=new_id(),
		text="",
		font_size=DEFAULT_FONT_SIZE,
		bold=False,
		align="left",
		margin_top=0.0,
		margin_right=0.0,
		margin_bottom=0.0,
		margin_left=0.0,
	)


#============================================
def create_line_from_template(template_line: TicketLine) -> TicketLine:
	"""
	Create an empty line copying another line's styling.

	Args:
		template_line: Line whose styling is copied.

	Returns:
		New TicketLine with empty text and a fresh id.
	"""
	return TicketLine(
		id=new_id(),
		text="",
		font_size=template_line.font_size,
		bold=template_line.bold,
		align=template_line.align,
		margin_top=template_line.margin_top,
		margin_right=template_line.margin_right,
		margin_bottom=template_line.margin_bottom,
		margin_left=template_line.margin_left,
	)


#============================================
def create_default_ticket(template_id: str) -> Ticket:
	return Ticket(id=new_id(), template_type=template_id, lines=[create_default_line()])


#============================================
def parse_number(value, field_name: str) -> float:
	"""
	Read a JSON number.

	Args:
		value: JSON value.
		field_name: Field name for error messages.

	Returns:
		Float value.
	"""
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		raise ValueError(f"{field_name} must be a number, got {value!r}")
	return float(value)


#============================================
def line_from_dict(data: dict, regenerate_ids: bool = False) -> TicketLine:
	"""
	Build a TicketLine from its JSON form.

	Args:
		data: Line dictionary with camelCase keys.
		regenerate_ids: Assign a fresh id instead of the stored one.

	Returns:
		TicketLine.
	"""
	if not isinstance(data, dict):
		raise ValueError(f"line must be an object, got {type(data).__name__}")
	align = data.get("align", "left")
	if align not in ALIGNMENTS:
		raise ValueError(f"align must be one of {ALIGNMENTS}, got {align!r}")
	line = TicketLine(
		text=str(data.get("text", "")),
		font_size=parse_number(data.get("fontSize", DEFAULT_FONT_SIZE), "fontSize"),
		bold=bool(data.get("bold", False)),
		align=align,
		id=new_id() if regenerate_ids else str(data.get("id", "")),
	)
	for wire_key, field_name in LINE_MARGIN_KEYS.items():
		if data.get(wire_key) is not None:
			setattr(line, field_name, parse_number(data[wire_key], wire_key))
	return line


#============================================
def line_to_dict(line: TicketLine) -> dict:
	data = {
		"id": line.id,
		"text": line.text,
		"fontSize": line.font_size,
		"bold": line.bold,
		"align": line.align,
	}
	for wire_key, field_name in LINE_MARGIN_KEYS.items():
		value = getattr(line, field_name)
		if value is not None:
			data[wire_key] = value
	return data


#============================================
def ticket_from_dict(data: dict, regenerate_ids: bool = False) -> Ticket:
	"""
	Build a Ticket from its JSON form.

	Args:
		data: Ticket dictionary with camelCase keys.
		regenerate_ids: Assign fresh ids to the ticket and its lines.

	Returns:
		Ticket.
	"""
	if not isinstance(data, dict):
		raise ValueError(f"ticket must be an object, got {type(data).__name__}")
	template_type = data.get("templateType")
	if not isinstance(template_type, str) or not template_type:
		raise ValueError("ticket is missing templateType")
	lines_data = data.get("lines", [])
	if not isinstance(lines_data, list):
		raise ValueError("ticket lines must be a list")
	ticket_id = new_id() if regenerate_ids else str(data.get("id") or new_id())
	barcode_value = data.get("barcode")
	qrcode_value = data.get("qrcode")
	return Ticket(
		id=ticket_id,
		template_type=template_type,
		lines=[line_from_dict(line, regenerate_ids) for line in lines_data],
		barcode=str(barcode_value) if barcode_value is not None else None,
		qrcode=str(qrcode_value) if qrcode_value is not None else None,
	)


#============================================
def ticket_to_dict(ticket: Ticket) -> dict:
	data = {
		"id": ticket.id,
		"templateType": ticket.template_type,
		"lines": [line_to_dict(line) for line in ticket.lines],
	}
	if ticket.barcode is not None:
		data["barcode"] = ticket.barcode
	if ticket.qrcode is not None:
		data["qrcode"] = ticket.qrcode
	return data


#============================================
def tickets_from_json(payload: str, regenerate_ids: bool = False) -> list[Ticket]:
	"""
	Parse a tickets JSON document.

	Accepts either a bare list of tickets or an object with a "tickets" list.

	Args:
		payload: JSON text.
		regenerate_ids: Assign fresh ids on import.

	Returns:
		List of tickets in document order.
	"""
	data = json.loads(payload)
	if isinstance(data, dict):
		data = data.get("tickets", [])
	if not isinstance(data, list):
		raise ValueError("tickets document must be a list or an object with a tickets list")
	tickets: list[Ticket] = []
	for index, entry in enumerate(data):
		try:
			tickets.append(ticket_from_dict(entry, regenerate_ids))
		except ValueError as error:
			raise ValueError(f"ticket {index}: {error}") from error
	return tickets


#============================================
def tickets_to_json(tickets: list[Ticket]) -> str:
	data = {"tickets": [ticket_to_dict(ticket) for ticket in tickets]}
	return json.dumps(data, indent=2, ensure_ascii=False)


#============================================
def load_tickets(path: pathlib.Path, regenerate_ids: bool = False) -> list[Ticket]:
	return tickets_from_json(path.read_text(encoding="utf-8"), regenerate_ids)


#============================================
def save_tickets(path: pathlib.Path, tickets: list[Ticket]) -> None:
	path.write_text(tickets_to_json(tickets) + "\n", encoding="utf-8")


#============================================
def barcode_options_from_dict(data: dict | None) -> BarcodeOptions | None:
	"""
	Read the overridable barcode styling of a template.

	Keys for fixed settings (format, displayValue, margin) are ignored.

	Args:
		data: barcodeOptions object, or None.

	Returns:
		BarcodeOptions or None.
	"""
	if data is None:
		return None
	if not isinstance(data, dict):
		raise ValueError("barcodeOptions must be an object")
	values = {}
	for wire_key, field_name in BARCODE_OPTION_KEYS.items():
		if data.get(wire_key) is None:
			continue
		if field_name in ("width", "font_size", "text_margin"):
			values[field_name] = parse_number(data[wire_key], wire_key)
		else:
			values[field_name] = str(data[wire_key])
	return BarcodeOptions(**values)


#============================================
def template_from_dict(data: dict) -> TemplateInfo:
	"""
	Build a TemplateInfo from a catalog entry.

	Args:
		data: Catalog entry with id, name, svgPath, width, height.

	Returns:
		TemplateInfo.
	"""
	if not isinstance(data, dict):
		raise ValueError(f"template must be an object, got {type(data).__name__}")
	for key in ("id", "svgPath"):
		if not isinstance(data.get(key), str) or not data.get(key):
			raise ValueError(f"template is missing {key}")
	return TemplateInfo(
		id=data["id"],
		name=str(data.get("name", data["id"])),
		svg_path=data["svgPath"],
		width=parse_number(data.get("width"), "width"),
		height=parse_number(data.get("height"), "height"),
		barcode_options=barcode_options_from_dict(data.get("barcodeOptions")),
	)


#============================================
def load_template_catalog(path: pathlib.Path) -> list[TemplateInfo]:
	"""
	Load a templates.json catalog.

	Args:
		path: Catalog path.

	Returns:
		Templates in catalog order.
	"""
	data = json.loads(path.read_text(encoding="utf-8"))
	if not isinstance(data, list):
		raise ValueError("template catalog must be a list")
	templates: list[TemplateInfo] = []
	for index, entry in enumerate(data):
		try:
			templates.append(template_from_dict(entry))
		except ValueError as error:
			raise ValueError(f"template {index}: {error}") from error
	return templates


#============================================
def read_template_svgs(
	templates: list[TemplateInfo],
	base_dir: pathlib.Path,
) -> dict[str, str]:
	"""
	Read the SVG markup of each template.

	svgPath is resolved against base_dir; a leading slash is ignored. A
	missing file is reported and left out.

	Args:
		templates: Template catalog.
		base_dir: Directory holding the catalog.

	Returns:
		SVG markup by template id.
	"""
	contents: dict[str, str] = {}
	for template in templates:
		svg_path = base_dir / template.svg_path.lstrip("/")
		try:
			contents[template.id] = svg_path.read_text(encoding="utf-8")
		except OSError as error:
			print(f"WARNING: failed to load SVG for template {template.id}: {error}")
	return contents
