"""
Ticket, template and region data types.
"""

# Standard Library
import dataclasses
import enum


class RegionKind(enum.Enum):
	TEXT = "text"
	BARCODE = "barcode"
	QRCODE = "qrcode"


@dataclasses.dataclass(frozen=True)
class TextRegion:
	x: float
	y: float
	width: float
	height: float

	kind = RegionKind.TEXT


@dataclasses.dataclass(frozen=True)
class BarcodeRegion:
	x: float
	y: float
	width: float
	height: float
	# degrees, about the canvas origin (not the region center)
	rotation: float = 0.0

	kind = RegionKind.BARCODE


@dataclasses.dataclass(frozen=True)
class QRCodeRegion:
	x: float
	y: float
	width: float
	height: float

	kind = RegionKind.QRCODE


Region = TextRegion | BarcodeRegion | QRCodeRegion


@dataclasses.dataclass(frozen=True)
class TemplateRegions:
	text: TextRegion | None = None
	barcode: BarcodeRegion | None = None
	qrcode: QRCodeRegion | None = None
	paint_order: tuple[RegionKind, ...] = ()

	#============================================
	def region_for(self, kind: RegionKind) -> Region | None:
		"""
		Look up the region declared for a kind.

		Args:
			kind: Region kind.

		Returns:
			Region or None when the template does not declare it.
		"""
		if kind is RegionKind.TEXT:
			return self.text
		if kind is RegionKind.BARCODE:
			return self.barcode
		if kind is RegionKind.QRCODE:
			return self.qrcode
		raise ValueError(f"Unknown region kind: {kind!r}")

	#============================================
	def ordered_regions(self) -> list[Region]:
		"""
		Regions in template paint order, skipping undeclared kinds.
		"""
		regions: list[Region] = []
		for kind in self.paint_order:
			region = self.region_for(kind)
			if region is not None:
				regions.append(region)
		return regions


@dataclasses.dataclass(frozen=True)
class BarcodeOptions:
	width: float | None = None
	font_size: float | None = None
	text_margin: float | None = None
	background: str | None = None
	line_color: str | None = None
	font_path: str | None = None


@dataclasses.dataclass(frozen=True)
class TemplateInfo:
	id: str
	name: str
	svg_path: str
	width: float
	height: float
	barcode_options: BarcodeOptions | None = None


@dataclasses.dataclass
class TicketLine:
	text: str = ""
	font_size: float = 10.5
	bold: bool = False
	align: str = "left"
	margin_top: float | None = None
	margin_right: float | None = None
	margin_bottom: float | None = None
	margin_left: float | None = None
	id: str = ""


@dataclasses.dataclass
class Ticket:
	id: str
	template_type: str
	lines: list[TicketLine] = dataclasses.field(default_factory=list)
	barcode: str | None = None
	qrcode: str | None = None
