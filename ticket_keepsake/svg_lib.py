"""
SVG template parsing: editable region bounds and paint order.
"""

# Standard Library
import re
import xml.etree.ElementTree as StdElementTree

# PIP3 modules
import defusedxml.ElementTree as ElementTree

# local repo modules
import ticket_keepsake.models


RegionKind = ticket_keepsake.models.RegionKind
TextRegion = ticket_keepsake.models.TextRegion
BarcodeRegion = ticket_keepsake.models.BarcodeRegion
QRCodeRegion = ticket_keepsake.models.QRCodeRegion
TemplateRegions = ticket_keepsake.models.TemplateRegions

EDITABLE_CLASS = "editable"
LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
ROTATE_RE = re.compile(r"rotate\(\s*(-?\d+(?:\.\d+)?)\s*\)")


#============================================
def parse_length_value(value: str | None, default_value: float = 0.0) -> float:
	"""
	Parse a numeric attribute, reading only its leading number.

	Args:
		value: Attribute string like "1.5" or "1.5cm".
		default_value: Fallback when the value is missing or not numeric.

	Returns:
		Parsed float value.
	"""
	if value is None:
		return default_value
	match = LEADING_NUMBER_RE.match(value)
	if match is None:
		return default_value
	return float(match.group(1))


#============================================
def parse_rotation(transform: str | None) -> float:
	"""
	Extract the rotate() angle from a transform attribute.

	Args:
		transform: SVG transform attribute value.

	Returns:
		Rotation in degrees, 0.0 when no rotate() directive is present.
	"""
	if not transform:
		return 0.0
	match = ROTATE_RE.search(transform)
	if match is None:
		return 0.0
	return float(match.group(1))


#============================================
def classify_element(element: StdElementTree.Element) -> RegionKind | None:
	"""
	Classify an element by its class tokens.

	Args:
		element: XML element.

	Returns:
		RegionKind, or None when the element is not an editable region.
	"""
	tokens = element.attrib.get("class", "").split()
	if EDITABLE_CLASS not in tokens:
		return None
	if "barcode" in tokens:
		return RegionKind.BARCODE
	if "qrcode" in tokens:
		return RegionKind.QRCODE
	if "text" in tokens:
		return RegionKind.TEXT
	return None


#============================================
def parse_box(element: StdElementTree.Element) -> tuple[float, float, float, float]:
	"""
	Read x, y, width and height from an element.

	Width and height are clamped to zero. x and y keep their sign because
	rotated regions are positioned in the rotated frame.

	Args:
		element: XML element.

	Returns:
		Tuple of (x, y, width, height) in template units (cm).
	"""
	x = parse_length_value(element.attrib.get("x"))
	y = parse_length_value(element.attrib.get("y"))
	width = max(0.0, parse_length_value(element.attrib.get("width")))
	height = max(0.0, parse_length_value(element.attrib.get("height")))
	return (x, y, width, height)


#============================================
def find_editable_elements(root: StdElementTree.Element) -> list[tuple[RegionKind, StdElementTree.Element]]:
	"""
	Collect editable elements in document order.

	Args:
		root: Parsed SVG root element.

	Returns:
		List of (kind, element) pairs.
	"""
	found: list[tuple[RegionKind, StdElementTree.Element]] = []
	for element in root.iter():
		kind = classify_element(element)
		if kind is not None:
			found.append((kind, element))
	return found


#============================================
def parse_svg_root(svg_content: str | bytes) -> StdElementTree.Element:
	"""
	Parse SVG markup into an element tree root.
	"""
	if isinstance(svg_content, str):
		svg_content = svg_content.encode("utf-8")
	return ElementTree.fromstring(svg_content)


#============================================
def first_element_of_kind(
	svg_content: str | bytes,
	kind: RegionKind,
) -> StdElementTree.Element | None:
	root = parse_svg_root(svg_content)
	for found_kind, element in find_editable_elements(root):
		if found_kind is kind:
			return element
	return None


#============================================
def parse_editable_order(svg_content: str | bytes) -> list[RegionKind]:
	"""
	Get the paint order of editable regions.

	Args:
		svg_content: SVG markup.

	Returns:
		Region kinds in declaration order, each kind listed once.
	"""
	root = parse_svg_root(svg_content)
	order: list[RegionKind] = []
	for kind, _element in find_editable_elements(root):
		if kind not in order:
			order.append(kind)
	return order


#============================================
def parse_text_region(svg_content: str | bytes) -> TextRegion | None:
	"""
	Extract the text region bounds.

	Args:
		svg_content: SVG markup.

	Returns:
		TextRegion or None if the template has no text region.
	"""
	element = first_element_of_kind(svg_content, RegionKind.TEXT)
	if element is None:
		return None
	return TextRegion(*parse_box(element))


#============================================
def parse_barcode_region(svg_content: str | bytes) -> BarcodeRegion | None:
	"""
	Extract the barcode region bounds and rotation.

	Args:
		svg_content: SVG markup.

	Returns:
		BarcodeRegion or None if the template has no barcode region.
	"""
	element = first_element_of_kind(svg_content, RegionKind.BARCODE)
	if element is None:
		return None
	x, y, width, height = parse_box(element)
	rotation = parse_rotation(element.attrib.get("transform"))
	return BarcodeRegion(x, y, width, height, rotation)


#============================================
def parse_qrcode_region(svg_content: str | bytes) -> QRCodeRegion | None:
	"""
	Extract the QR code region bounds.

	Args:
		svg_content: SVG markup.

	Returns:
		QRCodeRegion or None if the template has no QR region.
	"""
	element = first_element_of_kind(svg_content, RegionKind.QRCODE)
	if element is None:
		return None
	return QRCodeRegion(*parse_box(element))


#============================================
def parse_template_regions(svg_content: str | bytes) -> TemplateRegions:
	"""
	Parse all editable regions of a template in a single pass.

	The first element of each kind wins; later duplicates are ignored.

	Args:
		svg_content: SVG markup.

	Returns:
		TemplateRegions with bounds and paint order.
	"""
	root = parse_svg_root(svg_content)
	text_region = None
	barcode_region = None
	qrcode_region = None
	order: list[RegionKind] = []
	for kind, element in find_editable_elements(root):
		if kind in order:
			continue
		order.append(kind)
		if kind is RegionKind.TEXT:
			text_region = TextRegion(*parse_box(element))
		elif kind is RegionKind.BARCODE:
			x, y, width, height = parse_box(element)
			rotation = parse_rotation(element.attrib.get("transform"))
			barcode_region = BarcodeRegion(x, y, width, height, rotation)
		elif kind is RegionKind.QRCODE:
			qrcode_region = QRCodeRegion(*parse_box(element))
	return TemplateRegions(
		text=text_region,
		barcode=barcode_region,
		qrcode=qrcode_region,
		paint_order=tuple(order),
	)
