import json
import pathlib

import pypdf

import order_label_printer.cli


#============================================
def test_sample_command_writes_pdf(tmp_path: pathlib.Path, no_primary_font) -> None:
	"""
	The sample command writes one label PDF.
	"""
	output_path = tmp_path / "dist" / "sample-label.pdf"
	order_label_printer.cli.main(["sample", "-o", str(output_path), "-n", "#77"])
	assert output_path.exists()
	assert output_path.read_bytes().startswith(b"%PDF")


#============================================
def test_render_command_writes_labels_and_manifest(tmp_path: pathlib.Path, no_primary_font) -> None:
	"""
	The render command writes every copy, a preview and a manifest.
	"""
	order = {
		"name": "#3003",
		"line_items": [
			{
				"quantity": 2,
				"properties": [
					{"name": "label_text", "value": "Pantry"},
					{"name": "label_config_id", "value": "p1"},
				],
			},
			{
				"quantity": 1,
				"properties": [
					{"name": "label_text", "value": "Cellar"},
					{"name": "label_config_id", "value": "c1"},
				],
			},
		],
	}
	order_path = tmp_path / "order.json"
	order_path.write_text(json.dumps(order), encoding="utf-8")
	output_dir = tmp_path / "labels"
	combined_path = tmp_path / "preview.pdf"
	order_label_printer.cli.main([
		"render",
		str(order_path),
		"-o",
		str(output_dir),
		"-b",
		str(combined_path),
	])
	names = sorted(path.name for path in output_dir.glob("*.pdf"))
	assert names == ["label-c1-1.pdf", "label-p1-1.pdf", "label-p1-2.pdf"]
	assert len(pypdf.PdfReader(str(combined_path)).pages) == 3
	manifest = json.loads((output_dir / "manifest.json").read_text(encoding="utf-8"))
	assert manifest["configs"] == 2
	assert len(manifest["labels"]) == 3
	assert manifest["labels"][0]["order_number"] == "3003"
	assert manifest["font"]["fallback"] is True
	assert manifest["failures"] == {}


#============================================
def test_serve_command_runs_webhook_app(monkeypatch, no_primary_font) -> None:
	"""
	The serve command hands the webhook app to uvicorn on PORT.
	"""
	calls = []

	def fake_run(app, host: str, port: int) -> None:
		calls.append((app, host, port))

	monkeypatch.setattr(order_label_printer.cli.uvicorn, "run", fake_run)
	monkeypatch.setenv("PORT", "8123")
	order_label_printer.cli.main(["serve"])
	assert len(calls) == 1
	app, host, port = calls[0]
	assert host == "0.0.0.0"
	assert port == 8123
	paths = [route.path for route in app.routes]
	assert "/api/order-paid" in paths
