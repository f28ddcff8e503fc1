"""
CLI entry points for rendering order labels.
"""

# Standard Library
import argparse
import json
import logging
import os
import pathlib
import time

# PIP3 modules
import uvicorn

# local repo modules
import order_label_printer as olp
import order_label_printer.app
import order_label_printer.config
import order_label_printer.orders
import order_label_printer.render


LabelConfig = olp.config.LabelConfig
PageBounds = olp.config.PageBounds
BatchResult = olp.render.BatchResult
LabelFont = olp.render.LabelFont

DEFAULT_PAGE_BOUNDS = olp.config.DEFAULT_PAGE_BOUNDS
MM_TO_PT = olp.config.MM_TO_PT
PORT_ENV = olp.config.PORT_ENV
DEFAULT_PORT = olp.config.DEFAULT_PORT


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render order labels to PDF.")
	parser.add_argument("-f", "--font-path", dest="font_path", default=None, help="Impact TTF path override.")
	parser.add_argument("-v", "--verbose", dest="verbose", action="store_true", help="Log info messages.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	sample_parser = subparsers.add_parser("sample", help="Render one sample label.")
	sample_parser.add_argument("-o", "--output", dest="output_path", default="dist/sample-label.pdf", help="Output PDF path.")
	sample_parser.add_argument("-t", "--text", dest="text", default="Sample Label", help="Label text.")
	sample_parser.add_argument("-n", "--order-number", dest="order_number", default="#1001", help="Order number.")
	sample_parser.add_argument("-c", "--color", dest="color", default="#000000", help="Text color.")

	render_parser = subparsers.add_parser("render", help="Render all labels of an order JSON file.")
	render_parser.add_argument("order_path", help="Order JSON file.")
	render_parser.add_argument("-o", "--output-dir", dest="output_dir", required=True, help="Output directory.")
	render_parser.add_argument("-b", "--combined", dest="combined_path", default=None, help="Combined preview PDF path.")
	render_parser.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")

	serve_parser = subparsers.add_parser("serve", help="Serve the orders/paid webhook.")
	serve_parser.add_argument("-H", "--host", dest="host", default="0.0.0.0", help="Bind address.")
	serve_parser.add_argument("-p", "--port", dest="port", type=int, default=None, help="Port; PORT or 3000 when omitted.")

	args = parser.parse_args(argv)
	return args


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	order_path: pathlib.Path,
	configs: list[LabelConfig],
	batch: BatchResult,
	font: LabelFont,
	bounds: PageBounds,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		order_path: Input order file.
		configs: Label configurations.
		batch: Batch render result.
		font: Font used for the batch.
		bounds: Page geometry.
	"""
	data = {
		"order": str(order_path),
		"configs": len(configs),
		"labels": [
			{
				"filename": label.filename,
				"correlation_id": label.correlation_id,
				"copy": label.copy_index,
				"text": label.geometry.text,
				"font_size_pt": label.geometry.fit.font_size_pt,
				"width_pt": label.geometry.fit.measured_width_pt,
				"visible_height_pt": label.geometry.fit.measured_visible_height_pt,
				"order_number": "".join(p.character for p in label.geometry.digit_placements),
			}
			for label in batch.labels
		],
		"failures": batch.failures,
		"layout": {
			"page_width_mm": bounds.page_width / MM_TO_PT,
			"page_height_mm": bounds.page_height / MM_TO_PT,
			"column_width_mm": bounds.column_width / MM_TO_PT,
			"text_area_width_mm": bounds.text_area_width / MM_TO_PT,
			"text_area_height_mm": bounds.text_area_height / MM_TO_PT,
		},
		"font": {
			"name": font.font_name,
			"fallback": font.is_fallback,
			"path": font.source_path,
		},
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)


#============================================
def run_sample(args: argparse.Namespace, font: LabelFont) -> None:
	"""
	Render a single sample label.

	Args:
		args: Parsed argparse namespace.
		font: Font for the page.
	"""
	config = LabelConfig(
		text=args.text,
		color=args.color,
		correlation_id="demo",
		order_number=args.order_number,
	)
	data, geometry = olp.render.render_label_document(config, DEFAULT_PAGE_BOUNDS, font)
	output_path = pathlib.Path(args.output_path)
	output_path.parent.mkdir(parents=True, exist_ok=True)
	output_path.write_bytes(data)
	print(f"Font size: {geometry.fit.font_size_pt:.2f}pt")
	print(f"Text width: {geometry.fit.measured_width_pt:.2f}pt of {DEFAULT_PAGE_BOUNDS.text_area_width:.2f}pt")
	print(f"Generated sample PDF at: {output_path}")


#============================================
def run_render(args: argparse.Namespace, font: LabelFont) -> None:
	"""
	Render every label copy of an order file.

	Args:
		args: Parsed argparse namespace.
		font: Font for every page.
	"""
	order_path = pathlib.Path(args.order_path)
	output_dir = pathlib.Path(args.output_dir)
	print(f"Order file: {order_path}")
	print(f"Output directory: {output_dir}")

	start_time = time.perf_counter()
	with order_path.open("r", encoding="utf-8") as handle:
		order = json.load(handle)
	configs = olp.orders.extract_label_configs(order)
	print(f"Label configurations found: {len(configs)}")

	render_start = time.perf_counter()
	batch = olp.render.render_batch(configs, DEFAULT_PAGE_BOUNDS, font, verbose=True)
	render_end = time.perf_counter()

	output_dir.mkdir(parents=True, exist_ok=True)
	for label in batch.labels:
		(output_dir / label.filename).write_bytes(label.data)
	print(f"Labels written: {len(batch.labels)}")
	for correlation_id, message in sorted(batch.failures.items()):
		print(f"Label failed: {correlation_id}: {message}")

	if args.combined_path and batch.labels:
		combined_path = pathlib.Path(args.combined_path)
		combined_path.write_bytes(olp.render.combine_label_pages(batch.labels))
		print(f"Combined preview: {combined_path}")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = output_dir / "manifest.json"
	write_manifest(pathlib.Path(manifest_path), order_path, configs, batch, font, DEFAULT_PAGE_BOUNDS)
	print(f"Manifest written: {manifest_path}")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: render={:.2f}s total={:.2f}s".format(
			render_end - render_start,
			total_time,
		)
	)


#============================================
def run_serve(args: argparse.Namespace, font: LabelFont) -> None:
	"""
	Serve the webhook endpoint until interrupted.

	Args:
		args: Parsed CLI args.
		font: Font for every label.
	"""
	port = args.port
	if port is None:
		port = int(os.environ.get(PORT_ENV) or DEFAULT_PORT)
	app = olp.app.create_app(font=font)
	print(f"Webhook server listening on port {port}")
	uvicorn.run(app, host=args.host, port=port)


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	logging.basicConfig(
		level=logging.INFO if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
	)
	font = olp.render.load_label_font(olp.render.resolve_font_path(args.font_path))
	print(f"Font: {font.font_name}" + (" (fallback)" if font.is_fallback else ""))
	if args.command == "sample":
		run_sample(args, font)
	elif args.command == "serve":
		run_serve(args, font)
	else:
		run_render(args, font)


if __name__ == "__main__":
	main()
