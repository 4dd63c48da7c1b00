"""
CLI entry points for ticket rendering and PDF imposition.
"""

# Standard Library
import argparse
import pathlib
import time

# local repo modules
import ticket_keepsake as tk
import ticket_keepsake.config
import ticket_keepsake.impose
import ticket_keepsake.render
import ticket_keepsake.ticket_io


RenderConfig = tk.config.RenderConfig
PageConfig = tk.config.PageConfig

CSS_SCALE = tk.config.CSS_SCALE
DEFAULT_OVERSAMPLE = tk.config.DEFAULT_OVERSAMPLE
DEFAULT_PAGE_WIDTH = tk.config.DEFAULT_PAGE_WIDTH
DEFAULT_PAGE_HEIGHT = tk.config.DEFAULT_PAGE_HEIGHT
DEFAULT_SIDE_MARGIN = tk.config.DEFAULT_SIDE_MARGIN
DEFAULT_TOP_MARGIN = tk.config.DEFAULT_TOP_MARGIN
DEFAULT_TICKET_SPACING = tk.config.DEFAULT_TICKET_SPACING
DEFAULT_CUT_LINE_WIDTH = tk.config.DEFAULT_CUT_LINE_WIDTH
DEFAULT_CUT_LINE_GRAY = tk.config.DEFAULT_CUT_LINE_GRAY
DEFAULT_TEXT_MIN_SIZE = tk.config.DEFAULT_TEXT_MIN_SIZE
DEFAULT_LINE_SIDE_MARGIN = tk.config.DEFAULT_LINE_SIDE_MARGIN
DEFAULT_QR_ERROR_CORRECTION = tk.config.DEFAULT_QR_ERROR_CORRECTION
DEFAULT_FONT_REGULAR = tk.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = tk.config.DEFAULT_FONT_BOLD


#============================================
def build_render_config(args: argparse.Namespace) -> RenderConfig:
	"""
	Build render config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		RenderConfig.
	"""
	return RenderConfig(
		scale=CSS_SCALE * args.oversample,
		min_font_size=DEFAULT_TEXT_MIN_SIZE,
		line_side_margin=DEFAULT_LINE_SIDE_MARGIN,
		qr_error_correction=args.qr_error_correction,
		font_regular=args.font_regular,
		font_bold=args.font_bold,
		workers=max(1, args.workers),
	)


#============================================
def build_page_config(args: argparse.Namespace) -> PageConfig:
	"""
	Build page config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		PageConfig.
	"""
	page_width = args.page_width
	page_height = args.page_height
	if args.landscape:
		page_width, page_height = max(page_width, page_height), min(page_width, page_height)
	return PageConfig(
		page_width=page_width,
		page_height=page_height,
		side_margin=args.side_margin,
		top_margin=args.top_margin,
		spacing=args.spacing,
		cut_line_width=DEFAULT_CUT_LINE_WIDTH,
		cut_line_gray=DEFAULT_CUT_LINE_GRAY,
	)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render tickets from SVG templates and impose them into a PDF.")

	input_group = parser.add_argument_group("Input")
	input_group.add_argument("-t", "--templates", dest="templates_path", required=True, help="Template catalog JSON.")
	input_group.add_argument("-i", "--tickets", dest="tickets_path", required=True, help="Tickets JSON.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	output_group.add_argument("--tiles-dir", dest="tiles_dir", default=None, help="Write one PNG per ticket here.")

	render_group = parser.add_argument_group("Rendering")
	render_group.add_argument("-s", "--oversample", dest="oversample", type=float, default=DEFAULT_OVERSAMPLE, help="Raster oversampling over 96 dpi.")
	render_group.add_argument("-w", "--workers", dest="workers", type=int, default=1, help="Parallel ticket renders.")
	render_group.add_argument(
		"-e",
		"--qr-error-correction",
		dest="qr_error_correction",
		choices=("L", "M", "Q", "H"),
		default=DEFAULT_QR_ERROR_CORRECTION,
		help="QR error correction level.",
	)
	render_group.add_argument("--font", dest="font_regular", default=DEFAULT_FONT_REGULAR, help="Regular TrueType font.")
	render_group.add_argument("--bold-font", dest="font_bold", default=DEFAULT_FONT_BOLD, help="Bold TrueType font.")

	page_group = parser.add_argument_group("Page")
	page_group.add_argument("--page-width", dest="page_width", type=float, default=DEFAULT_PAGE_WIDTH, help="Page width (cm).")
	page_group.add_argument("--page-height", dest="page_height", type=float, default=DEFAULT_PAGE_HEIGHT, help="Page height (cm).")
	page_group.add_argument("--side-margin", dest="side_margin", type=float, default=DEFAULT_SIDE_MARGIN, help="Left/right margin (cm).")
	page_group.add_argument("--top-margin", dest="top_margin", type=float, default=DEFAULT_TOP_MARGIN, help="Top/bottom margin (cm).")
	page_group.add_argument("--spacing", dest="spacing", type=float, default=DEFAULT_TICKET_SPACING, help="Gap between tickets (cm).")
	page_group.add_argument("-l", "--landscape", dest="landscape", action="store_true", help="Landscape pages.")
	page_group.add_argument("-L", "--no-landscape", dest="landscape", action="store_false", help="Portrait pages.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument(
		"--stop-before-imposition",
		dest="stop_before_imposition",
		action="store_true",
		help="Stop after rendering tickets (skip the PDF).",
	)

	parser.set_defaults(
		landscape=False,
		stop_before_imposition=False,
	)

	args = parser.parse_args(argv)
	return args


#============================================
def write_skip_log(skipped: list[str], output_path: pathlib.Path) -> pathlib.Path:
	"""
	Write skipped ticket ids next to the output PDF.

	Args:
		skipped: Skipped ticket ids.
		output_path: Output PDF path.

	Returns:
		Log path.
	"""
	log_path = output_path.parent / "skipped_tickets.log"
	with log_path.open("w", encoding="utf-8") as handle:
		handle.write("\n".join(skipped) + "\n")
	return log_path


#============================================
def run_pipeline(args: argparse.Namespace) -> None:
	"""
	Run the full pipeline from JSON input to PDF output.

	Args:
		args: Parsed argparse namespace.
	"""
	print("Ticket PDF pipeline")
	print(f"Templates: {args.templates_path}")
	print(f"Tickets: {args.tickets_path}")
	print(f"Output PDF: {args.output_path}")
	if args.manifest_path:
		print(f"Manifest: {args.manifest_path}")
	print(f"Oversample: {args.oversample}")
	print(f"Workers: {args.workers}")
	if args.stop_before_imposition:
		print("Stop before imposition: True")

	start_time = time.perf_counter()
	templates_path = pathlib.Path(args.templates_path)
	tickets_path = pathlib.Path(args.tickets_path)
	templates = tk.ticket_io.load_template_catalog(templates_path)
	svg_contents = tk.ticket_io.read_template_svgs(templates, templates_path.parent)
	tickets = tk.ticket_io.load_tickets(tickets_path)
	print(f"Templates loaded: {len(templates)}")
	print(f"Tickets loaded: {len(tickets)}")

	render_config = build_render_config(args)
	render_start = time.perf_counter()
	layouts = tk.render.build_template_layouts(templates, svg_contents, render_config)
	rendered = tk.render.render_tickets(tickets, layouts, render_config, verbose=True)
	render_end = time.perf_counter()
	rendered_count = sum(1 for entry in rendered if entry.image is not None)
	print(f"Tickets rendered: {rendered_count}")

	output_path = pathlib.Path(args.output_path)
	if args.tiles_dir:
		tiles = tk.render.write_ticket_tiles(rendered, pathlib.Path(args.tiles_dir))
		print(f"Tiles written: {len(tiles)} to {args.tiles_dir}")

	if args.stop_before_imposition:
		print("Stopping before imposition.")
		total_time = time.perf_counter() - start_time
		print(
			"Timing: render={:.2f}s total={:.2f}s".format(
				render_end - render_start,
				total_time,
			)
		)
		return

	# only templates that loaded can place tickets
	template_map = {template_id: layout.template for template_id, layout in layouts.items()}
	page_config = build_page_config(args)
	print("Imposing tickets")
	impose_start = time.perf_counter()
	result = tk.impose.impose_tickets(rendered, template_map, output_path, page_config)
	impose_end = time.perf_counter()
	print(f"Pages written: {result.pages}")
	print(f"Tickets placed: {result.placed_tickets}")
	print(f"Tickets skipped: {result.skipped_tickets}")
	if result.skipped_tickets > 0:
		log_path = write_skip_log(result.skipped_ids, output_path)
		print(f"Skipped ticket log written: {log_path}")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	tk.impose.write_manifest(
		pathlib.Path(manifest_path),
		[templates_path, tickets_path],
		result,
		page_config,
		render_config,
	)

	total_time = time.perf_counter() - start_time
	print(
		"Timing: render={:.2f}s impose={:.2f}s total={:.2f}s".format(
			render_end - render_start,
			impose_end - impose_start,
			total_time,
		)
	)
	print(f"Manifest written: {manifest_path}")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	run_pipeline(args)
