import copy
import io
import pathlib

import PIL.Image
import PIL.ImageChops

import ticket_keepsake.codes
import ticket_keepsake.config
import ticket_keepsake.impose
import ticket_keepsake.models
import ticket_keepsake.render


TemplateInfo = ticket_keepsake.models.TemplateInfo
Ticket = ticket_keepsake.models.Ticket
TicketLine = ticket_keepsake.models.TicketLine

SCALE = 20.0

LAYERED_SVG = """<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 5">
	<rect class="editable qrcode" x="6" y="0.5" width="3" height="3"/>
	<rect class="editable text" x="0.5" y="0.5" width="5" height="4"/>
	<rect class="editable barcode" x="0.5" y="3" width="5" height="1.5"/>
</svg>
"""

EMPTY_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 5"><rect x="0" y="0" width="10" height="5" fill="red"/></svg>'


#============================================
def build_config(workers: int = 1) -> ticket_keepsake.config.RenderConfig:
	config = ticket_keepsake.config.default_render_config()
	config.scale = SCALE
	config.workers = workers
	return config


#============================================
def build_page_config() -> ticket_keepsake.config.PageConfig:
	return ticket_keepsake.config.default_page_config()


#============================================
def build_layout(svg: str, template_id: str = "tt-basic") -> ticket_keepsake.render.TemplateLayout:
	"""
	Build a layout with a plain white backdrop, bypassing cairo.
	"""
	template = TemplateInfo(id=template_id, name="Basic", svg_path="basic.svg", width=10.0, height=5.0)
	backdrop = PIL.Image.new("RGB", (50, 25), (255, 255, 255))
	return ticket_keepsake.render.build_template_layout(template, svg, build_config(), backdrop=backdrop)


#============================================
def build_ticket(ticket_id: str = "t1", template_id: str = "tt-basic") -> Ticket:
	return Ticket(
		id=ticket_id,
		template_type=template_id,
		lines=[TicketLine(text="ADMIT ONE", font_size=14.0, bold=True), TicketLine(text="Row 4", font_size=10.0)],
		barcode="A-0001",
		qrcode="https://example.com/t/1",
	)


#============================================
def has_ink(image: PIL.Image.Image, box: tuple[int, int, int, int]) -> bool:
	region = image.convert("RGB").crop(box)
	background = PIL.Image.new("RGB", region.size, (255, 255, 255))
	return PIL.ImageChops.difference(region, background).getbbox() is not None


#============================================
def test_raster_size_follows_template_and_scale() -> None:
	layout = build_layout(LAYERED_SVG)
	assert layout.backdrop.size == (200, 100)
	image = ticket_keepsake.render.composite_ticket(layout, build_ticket(), build_config())
	assert image.size == (200, 100)
	assert image.mode == "RGBA"


#============================================
def test_regions_are_drawn_in_template_order(monkeypatch) -> None:
	"""
	Text, barcode and QR draw calls follow the SVG declaration order.
	"""
	calls: list[str] = []

	def fake_text(canvas, region, lines, config, font_book):
		calls.append("text")

	def fake_barcode(canvas, region, value, options, scale):
		calls.append("barcode")
		return True

	def fake_qrcode(canvas, region, value, scale, error_correction="M"):
		calls.append("qrcode")
		return True

	monkeypatch.setattr(ticket_keepsake.render, "draw_text_region", fake_text)
	monkeypatch.setattr(ticket_keepsake.codes, "draw_barcode", fake_barcode)
	monkeypatch.setattr(ticket_keepsake.codes, "draw_qrcode", fake_qrcode)

	layout = build_layout(LAYERED_SVG)
	ticket_keepsake.render.composite_ticket(layout, build_ticket(), build_config())
	assert calls == ["qrcode", "text", "barcode"]


#============================================
def test_composite_draws_every_region() -> None:
	layout = build_layout(LAYERED_SVG)
	image = ticket_keepsake.render.composite_ticket(layout, build_ticket(), build_config())
	assert has_ink(image, (10, 10, 110, 60))
	assert has_ink(image, (10, 60, 110, 90))
	assert has_ink(image, (120, 10, 180, 70))


#============================================
def test_template_without_regions_draws_only_backdrop() -> None:
	layout = build_layout(EMPTY_SVG)
	image = ticket_keepsake.render.composite_ticket(layout, build_ticket(), build_config())
	assert image.tobytes() == layout.backdrop.tobytes()


#============================================
def test_composite_does_not_mutate_inputs() -> None:
	layout = build_layout(LAYERED_SVG)
	ticket = build_ticket()
	snapshot = copy.deepcopy(ticket)
	backdrop_bytes = layout.backdrop.tobytes()
	ticket_keepsake.render.composite_ticket(layout, ticket, build_config())
	assert ticket == snapshot
	assert layout.backdrop.tobytes() == backdrop_bytes


#============================================
def test_render_tickets_skips_unknown_templates(capsys) -> None:
	layouts = {"tt-basic": build_layout(LAYERED_SVG)}
	tickets = [
		build_ticket("a"),
		build_ticket("lost", template_id="tt-missing"),
		build_ticket("b"),
	]
	rendered = ticket_keepsake.render.render_tickets(tickets, layouts, build_config())
	assert [entry.ticket.id for entry in rendered] == ["a", "lost", "b"]
	assert [entry.image is None for entry in rendered] == [False, True, False]
	assert "tt-missing" in capsys.readouterr().out


#============================================
def test_parallel_render_matches_sequential() -> None:
	layouts = {"tt-basic": build_layout(LAYERED_SVG)}
	tickets = [build_ticket(f"t{index}") for index in range(6)]
	tickets[2].barcode = "   "
	tickets[4].lines = []
	sequential = ticket_keepsake.render.render_tickets(tickets, layouts, build_config(workers=1))
	parallel = ticket_keepsake.render.render_tickets(tickets, layouts, build_config(workers=3))
	assert [entry.ticket.id for entry in parallel] == [entry.ticket.id for entry in sequential]
	for left, right in zip(sequential, parallel):
		assert left.image.tobytes() == right.image.tobytes()


#============================================
def test_backdrop_is_rasterized_from_svg(cairosvg_module) -> None:
	template = TemplateInfo(id="tt-red", name="Red", svg_path="red.svg", width=10.0, height=5.0)
	layout = ticket_keepsake.render.build_template_layout(template, EMPTY_SVG, build_config())
	assert layout.backdrop.size == (200, 100)
	red, green, blue, _alpha = layout.backdrop.getpixel((100, 50))
	assert red > 200 and green < 50 and blue < 50


#============================================
def test_build_template_layouts_skips_broken_templates(capsys) -> None:
	templates = [
		TemplateInfo(id="tt-broken", name="Broken", svg_path="broken.svg", width=10.0, height=5.0),
		TemplateInfo(id="tt-absent", name="Absent", svg_path="absent.svg", width=10.0, height=5.0),
	]
	layouts = ticket_keepsake.render.build_template_layouts(
		templates,
		{"tt-broken": "<svg><rect"},
		build_config(),
	)
	assert layouts == {}
	output = capsys.readouterr().out
	assert "tt-broken" in output
	assert "tt-absent" in output


#============================================
def test_write_ticket_tiles(tmp_path: pathlib.Path) -> None:
	rendered = [
		ticket_keepsake.render.RenderedTicket(
			ticket=build_ticket("ticket/1"),
			image=PIL.Image.new("RGBA", (20, 10), (255, 255, 255, 255)),
		),
		ticket_keepsake.render.RenderedTicket(ticket=build_ticket("lost"), image=None),
		ticket_keepsake.render.RenderedTicket(
			ticket=build_ticket("ticket/1"),
			image=PIL.Image.new("RGBA", (20, 10), (0, 0, 0, 255)),
		),
	]
	tiles = ticket_keepsake.render.write_ticket_tiles(rendered, tmp_path / "tiles")
	names = [pathlib.Path(tile["path"]).name for tile in tiles]
	assert names == ["001_ticket_1.png", "002_ticket_1.png"]
	for tile in tiles:
		assert pathlib.Path(tile["path"]).exists()


#============================================
def test_tickets_sharing_an_id_keep_their_own_rasters() -> None:
	"""
	Two tickets with the same id are rendered and placed separately.
	"""
	layouts = {"tt-basic": build_layout(LAYERED_SVG)}
	first = build_ticket("dup")
	first.lines = [TicketLine(text="FIRST", font_size=14.0)]
	second = build_ticket("dup")
	second.lines = [TicketLine(text="SECOND", font_size=14.0)]
	rendered = ticket_keepsake.render.render_tickets([first, second], layouts, build_config())
	assert len(rendered) == 2
	assert rendered[0].ticket is first
	assert rendered[1].ticket is second
	assert rendered[0].image.tobytes() != rendered[1].image.tobytes()

	templates = {"tt-basic": layouts["tt-basic"].template}
	items, skipped = ticket_keepsake.impose.build_pack_items(rendered, templates)
	assert skipped == []
	assert items[0].image is rendered[0].image
	assert items[1].image is rendered[1].image
	result = ticket_keepsake.impose.impose_tickets(rendered, templates, io.BytesIO(), build_page_config())
	assert result.placed_tickets == 2
	assert result.skipped_ids == []


#============================================
def test_line_breaks_do_not_push_text_below_region() -> None:
	"""
	A line holding newlines draws as one line inside a 1 cm region.
	"""
	svg = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 5"><rect class="editable text" x="0" y="0" width="10" height="1"/></svg>'
	layout = build_layout(svg)
	ticket = Ticket(id="nl", template_type="tt-basic", lines=[TicketLine(text="ONE\nTWO\r\nTHREE", font_size=10.5)])
	image = ticket_keepsake.render.composite_ticket(layout, ticket, build_config())
	region_bottom = int(1.0 * SCALE)
	assert has_ink(image, (0, 0, 200, region_bottom))
	assert not has_ink(image, (0, region_bottom, 200, 100))
