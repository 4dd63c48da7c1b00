import pytest

import ticket_keepsake.models
import ticket_keepsake.text_flow


TextRegion = ticket_keepsake.models.TextRegion
TicketLine = ticket_keepsake.models.TicketLine

SCALE = 37.8
MIN_FONT_SIZE = 8.0


#============================================
def fixed_measure(text: str, font_size: float, bold: bool) -> float:
	"""
	Deterministic width: half the font size per character, wider when bold.
	"""
	width = len(text) * font_size * 0.5
	if bold:
		width *= 1.1
	return width


#============================================
def flow(region: TextRegion | None, lines: list[TicketLine]) -> ticket_keepsake.text_flow.TextFlowResult:
	return ticket_keepsake.text_flow.flow_text_lines(
		region,
		lines,
		fixed_measure,
		SCALE,
		min_font_size=MIN_FONT_SIZE,
	)


#============================================
def test_left_aligned_line_uses_default_side_margin() -> None:
	"""
	A single left-aligned line starts 0.2 cm in from the region edge.
	"""
	region = TextRegion(x=1.0, y=2.0, width=10.0, height=3.0)
	result = flow(region, [TicketLine(text="A", font_size=12.0)])
	assert len(result.runs) == 1
	run = result.runs[0]
	assert run.x - region.x * SCALE == pytest.approx(7.56)
	assert run.y == pytest.approx(region.y * SCALE)
	assert run.font_size == 12.0


#============================================
def test_center_and_right_alignment() -> None:
	region = TextRegion(x=0.0, y=0.0, width=10.0, height=5.0)
	lines = [
		TicketLine(text="abcd", font_size=10.0, align="center", margin_left=1.0, margin_right=0.5),
		TicketLine(text="abcd", font_size=10.0, align="right", margin_left=1.0, margin_right=0.5),
	]
	result = flow(region, lines)
	text_width = fixed_measure("abcd", 10.0, False)
	available = region.width * SCALE - (1.0 + 0.5) * SCALE
	assert result.runs[0].x == pytest.approx(1.0 * SCALE + (available - text_width) / 2.0)
	assert result.runs[1].x == pytest.approx(region.width * SCALE - 0.5 * SCALE - text_width)


#============================================
def test_font_size_is_clamped_to_minimum() -> None:
	region = TextRegion(x=0.0, y=0.0, width=5.0, height=5.0)
	result = flow(region, [TicketLine(text="tiny", font_size=4.0)])
	assert result.runs[0].font_size == MIN_FONT_SIZE
	assert result.cursor_y == pytest.approx(MIN_FONT_SIZE)


#============================================
def test_margins_shift_lines_vertically() -> None:
	region = TextRegion(x=0.0, y=1.0, width=5.0, height=5.0)
	lines = [
		TicketLine(text="one", font_size=10.0, margin_top=0.1, margin_bottom=0.3),
		TicketLine(text="two", font_size=12.0, margin_top=0.2),
	]
	result = flow(region, lines)
	first_y = 1.0 * SCALE + 0.1 * SCALE
	second_y = first_y + 10.0 + 0.3 * SCALE + 0.2 * SCALE
	assert result.runs[0].y == pytest.approx(first_y)
	assert result.runs[1].y == pytest.approx(second_y)


#============================================
def test_cursor_advances_by_line_height_for_every_line() -> None:
	"""
	The cursor step per line is its clamped size plus bottom margin,
	whether the line was drawn, empty, or overflowed.
	"""
	region = TextRegion(x=0.0, y=0.0, width=4.0, height=1.0)
	lines = [
		TicketLine(text="drawn", font_size=12.0, margin_bottom=0.1),
		TicketLine(text="", font_size=20.0, margin_bottom=0.2),
		TicketLine(text="too tall", font_size=60.0, margin_bottom=0.05),
		TicketLine(text="small", font_size=3.0),
	]
	previous = region.y * SCALE
	for index, line in enumerate(lines):
		result = flow(region, lines[: index + 1])
		top = (line.margin_top or 0.0) * SCALE
		bottom = (line.margin_bottom or 0.0) * SCALE
		expected = previous + top + max(MIN_FONT_SIZE, line.font_size) + bottom
		assert result.cursor_y == pytest.approx(expected)
		previous = result.cursor_y


#============================================
def test_empty_line_draws_nothing_but_reserves_height() -> None:
	region = TextRegion(x=0.0, y=0.0, width=5.0, height=5.0)
	result = flow(region, [TicketLine(text="", font_size=14.0), TicketLine(text="after", font_size=10.0)])
	assert [run.text for run in result.runs] == ["after"]
	assert result.runs[0].y == pytest.approx(14.0)


#============================================
def test_overflowing_line_is_skipped_and_later_lines_keep_position() -> None:
	"""
	A line that does not fit is not drawn, and the next line is placed as
	if it had been.
	"""
	region = TextRegion(x=0.0, y=0.0, width=5.0, height=2.0)
	region_bottom = region.height * SCALE
	lines = [
		TicketLine(text="fits", font_size=region_bottom - 10.0),
		TicketLine(text="overflow", font_size=40.0),
		TicketLine(text="also out", font_size=10.0),
	]
	result = flow(region, lines)
	assert [run.text for run in result.runs] == ["fits"]
	assert result.skipped_lines == 2
	assert result.cursor_y == pytest.approx(region_bottom - 10.0 + 40.0 + 10.0)


#============================================
def test_line_touching_region_bottom_is_drawn() -> None:
	region = TextRegion(x=0.0, y=0.0, width=5.0, height=1.0)
	result = flow(region, [TicketLine(text="edge", font_size=SCALE)])
	assert len(result.runs) == 1


#============================================
def test_no_region_yields_nothing() -> None:
	result = flow(None, [TicketLine(text="lost", font_size=10.0)])
	assert result.runs == []


#============================================
def test_font_scale_multiplies_line_height() -> None:
	region = TextRegion(x=0.0, y=0.0, width=5.0, height=5.0)
	result = ticket_keepsake.text_flow.flow_text_lines(
		region,
		[TicketLine(text="x", font_size=10.0), TicketLine(text="y", font_size=4.0)],
		fixed_measure,
		SCALE * 3.0,
		font_scale=3.0,
		min_font_size=MIN_FONT_SIZE,
	)
	assert result.runs[0].font_size == 30.0
	assert result.runs[1].y == pytest.approx(30.0)
	assert result.runs[1].font_size == MIN_FONT_SIZE * 3.0


#============================================
def test_resolve_line_margins() -> None:
	line = TicketLine(margin_top=0.3, margin_right=None, margin_bottom=None, margin_left=0.0)
	assert ticket_keepsake.text_flow.resolve_line_margins(line, 0.2) == (0.3, 0.2, 0.0, 0.0)


#============================================
def test_line_breaks_become_spaces() -> None:
	"""
	Newlines inside a line are measured and drawn as spaces.
	"""
	region = TextRegion(x=0.0, y=0.0, width=10.0, height=1.0)
	line = TicketLine(text="ONE\nTWO\r\nTHREE", font_size=10.0, align="right", margin_right=0.0)
	result = flow(region, [line])
	assert len(result.runs) == 1
	run = result.runs[0]
	assert run.text == "ONE TWO  THREE"
	assert run.x == pytest.approx(region.width * SCALE - fixed_measure("ONE TWO  THREE", 10.0, False))
	assert result.cursor_y == pytest.approx(10.0)
