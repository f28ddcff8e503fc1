"""
Label page rendering.
"""

# Standard Library
import dataclasses
import io
import logging
import os
import pathlib

# PIP3 modules
import PIL.ImageColor
import pypdf
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfbase.ttfonts
import reportlab.pdfgen.canvas

# local repo modules
import order_label_printer as olp
import order_label_printer.config
import order_label_printer.errors
import order_label_printer.layout
import order_label_printer.order_number


LabelConfig = olp.config.LabelConfig
PageBounds = olp.config.PageBounds
FontCalibration = olp.config.FontCalibration
GlyphFitResult = olp.config.GlyphFitResult
DigitPlacement = olp.config.DigitPlacement
LabelValidationError = olp.errors.LabelValidationError
LabelRenderError = olp.errors.LabelRenderError

DEFAULT_PAGE_BOUNDS = olp.config.DEFAULT_PAGE_BOUNDS
IMPACT_CALIBRATION = olp.config.IMPACT_CALIBRATION
HELVETICA_BOLD_CALIBRATION = olp.config.HELVETICA_BOLD_CALIBRATION
FONT_PATH_ENV = olp.config.FONT_PATH_ENV
ORDER_NUMBER_FONT_SIZE_PT = olp.config.ORDER_NUMBER_FONT_SIZE_PT
DEFAULT_CORRELATION_ID = olp.config.DEFAULT_CORRELATION_ID
PROGRESS_BAR_WIDTH = olp.config.PROGRESS_BAR_WIDTH

REPO_ROOT = pathlib.Path(__file__).resolve().parent.parent
FONT_CANDIDATE_PATHS = (
	REPO_ROOT / "Impact" / "Impact.ttf",
	REPO_ROOT / "fonts" / "Impact.ttf",
	REPO_ROOT / "fonts" / "impact.ttf",
	pathlib.Path(__file__).resolve().parent / "fonts" / "Impact.ttf",
)

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class LabelFont:
	font_name: str
	calibration: FontCalibration
	is_fallback: bool
	source_path: str | None = None


FALLBACK_FONT = LabelFont(
	font_name=HELVETICA_BOLD_CALIBRATION.font_name,
	calibration=HELVETICA_BOLD_CALIBRATION,
	is_fallback=True,
)


@dataclasses.dataclass(frozen=True)
class LabelGeometry:
	text: str
	font_name: str
	fit: GlyphFitResult
	text_x: float
	baseline_y: float
	digit_placements: tuple[DigitPlacement, ...]


@dataclasses.dataclass(frozen=True)
class RenderedLabel:
	filename: str
	data: bytes
	correlation_id: str
	copy_index: int
	geometry: LabelGeometry


@dataclasses.dataclass
class BatchResult:
	labels: list[RenderedLabel]
	failures: dict[str, str]


#============================================
def resolve_font_path(override: str | None = None) -> pathlib.Path | None:
	"""
	Find the primary font file.

	Checks the explicit override, then the IMPACT_FONT_PATH environment
	setting, then the fixed candidate paths.

	Args:
		override: Optional font file path.

	Returns:
		Existing font path or None.
	"""
	for requested in (override, os.environ.get(FONT_PATH_ENV)):
		if not requested:
			continue
		path = pathlib.Path(requested)
		if path.is_file():
			return path
		logger.warning("Font file not found: %s", path)
	for candidate in FONT_CANDIDATE_PATHS:
		if candidate.is_file():
			return candidate
	return None


#============================================
def load_label_font(font_path: pathlib.Path | None) -> LabelFont:
	"""
	Register the primary font, or fall back to Helvetica-Bold.

	Font problems never raise; the fallback font is returned with a
	warning so both the order number and the text use the same font.

	Args:
		font_path: Primary font file, or None when none was found.

	Returns:
		LabelFont to use for the whole page.
	"""
	if font_path is None:
		logger.warning(
			"%s font not found; using %s",
			IMPACT_CALIBRATION.font_name,
			FALLBACK_FONT.font_name,
		)
		return FALLBACK_FONT
	try:
		font = reportlab.pdfbase.ttfonts.TTFont(IMPACT_CALIBRATION.font_name, str(font_path))
		reportlab.pdfbase.pdfmetrics.registerFont(font)
	except (OSError, reportlab.pdfbase.ttfonts.TTFError) as error:
		logger.warning(
			"Could not load font %s (%s); using %s",
			font_path,
			error,
			FALLBACK_FONT.font_name,
		)
		return FALLBACK_FONT
	return LabelFont(
		font_name=IMPACT_CALIBRATION.font_name,
		calibration=IMPACT_CALIBRATION,
		is_fallback=False,
		source_path=str(font_path),
	)


#============================================
def parse_label_color(value: str | None) -> tuple[float, float, float]:
	"""
	Parse a label color into RGB floats.

	Args:
		value: Color like "#AABBCC", "#ABC", "red" or "rgb(10, 20, 30)".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range.
	"""
	if not value or not value.strip():
		return (0.0, 0.0, 0.0)
	try:
		rgb = PIL.ImageColor.getrgb(value.strip())
	except ValueError as error:
		raise LabelValidationError(f"Unknown label color {value!r}.") from error
	return (rgb[0] / 255.0, rgb[1] / 255.0, rgb[2] / 255.0)


#============================================
def sanitize_token(value: str) -> str:
	"""
	Sanitize a correlation id for filenames.

	Args:
		value: Input string.

	Returns:
		Sanitized string.
	"""
	result: list[str] = []
	for char in value.strip():
		if char.isalnum() or char in "-_.":
			result.append(char)
		else:
			result.append("_")
	sanitized = "".join(result).strip("_.")
	if not sanitized:
		return DEFAULT_CORRELATION_ID
	return sanitized


#============================================
def build_label_filename(correlation_id: str, copy_index: int) -> str:
	"""
	Build the output filename for one label copy.

	Args:
		correlation_id: Label configuration id.
		copy_index: 1-based copy number.

	Returns:
		Filename like "label-<id>-<copy>.pdf".
	"""
	return f"label-{sanitize_token(correlation_id)}-{copy_index}.pdf"


#============================================
def compute_label_geometry(
	config: LabelConfig,
	bounds: PageBounds = DEFAULT_PAGE_BOUNDS,
	font: LabelFont = FALLBACK_FONT,
) -> LabelGeometry:
	"""
	Compute the text fit and digit placements for a label.

	Args:
		config: Label configuration.
		bounds: Page geometry.
		font: Font for the whole page.

	Returns:
		LabelGeometry.
	"""
	text = config.text.strip().upper()
	try:
		cap_height_ratio = olp.layout.resolve_cap_height_ratio(font.font_name, font.calibration)
		fit = olp.layout.solve_fit(
			text,
			font.font_name,
			bounds.text_area_width,
			bounds.text_area_height,
			cap_height_ratio,
		)
		text_x, baseline_y = olp.layout.compute_text_origin(
			fit,
			bounds,
			font.calibration.ascent_fraction,
		)
		placements = olp.order_number.layout_order_number(
			config.order_number,
			bounds.column_width,
			bounds.column_height,
			digit_font_size=ORDER_NUMBER_FONT_SIZE_PT,
			font_name=font.font_name,
			cap_height_ratio=cap_height_ratio,
			spacing_factor=font.calibration.digit_spacing_factor,
			column_x=bounds.column_x,
			column_y=bounds.column_y,
		)
	except (ValueError, ZeroDivisionError, KeyError) as error:
		raise LabelRenderError(str(error), config.correlation_id) from error
	return LabelGeometry(
		text=text,
		font_name=font.font_name,
		fit=fit,
		text_x=text_x,
		baseline_y=baseline_y,
		digit_placements=tuple(placements),
	)


#============================================
def draw_label(
	pdf: reportlab.pdfgen.canvas.Canvas,
	geometry: LabelGeometry,
	color: tuple[float, float, float],
) -> None:
	"""
	Draw the order number column and the main text.

	Args:
		pdf: ReportLab canvas.
		geometry: Computed label geometry.
		color: Text color as RGB floats.
	"""
	pdf.setFillColorRGB(color[0], color[1], color[2])
	olp.order_number.draw_order_number(pdf, list(geometry.digit_placements), geometry.font_name)
	pdf.setFont(geometry.font_name, geometry.fit.font_size_pt)
	pdf.drawString(geometry.text_x, geometry.baseline_y, geometry.text)


#============================================
def render_label_document(
	config: LabelConfig,
	bounds: PageBounds = DEFAULT_PAGE_BOUNDS,
	font: LabelFont | None = None,
) -> tuple[bytes, LabelGeometry]:
	"""
	Render a label into a single-page PDF.

	Args:
		config: Label configuration.
		bounds: Page geometry.
		font: Font for the page; resolved and loaded when None.

	Returns:
		Tuple of (pdf_bytes, geometry).
	"""
	color = parse_label_color(config.color)
	if font is None:
		font = load_label_font(resolve_font_path())
	geometry = compute_label_geometry(config, bounds, font)

	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(
		buffer,
		pagesize=(bounds.page_width, bounds.page_height),
		invariant=1,
	)
	pdf.setTitle(f"Label {config.correlation_id or DEFAULT_CORRELATION_ID}")
	draw_label(pdf, geometry, color)
	# exactly one page per document
	pdf.showPage()
	pdf.save()
	return (buffer.getvalue(), geometry)


#============================================
def render_label_pdf(
	config: LabelConfig,
	bounds: PageBounds = DEFAULT_PAGE_BOUNDS,
	font: LabelFont | None = None,
) -> bytes:
	"""
	Render a label into PDF bytes.

	Args:
		config: Label configuration.
		bounds: Page geometry.
		font: Font for the page; resolved and loaded when None.

	Returns:
		PDF document bytes.
	"""
	data, _geometry = render_label_document(config, bounds, font)
	return data


#============================================
def render_label_copies(
	config: LabelConfig,
	bounds: PageBounds = DEFAULT_PAGE_BOUNDS,
	font: LabelFont | None = None,
) -> list[RenderedLabel]:
	"""
	Render every requested copy of a label.

	Args:
		config: Label configuration.
		bounds: Page geometry.
		font: Font for the pages; resolved and loaded when None.

	Returns:
		RenderedLabel per copy.
	"""
	if font is None:
		font = load_label_font(resolve_font_path())
	correlation_id = config.correlation_id or DEFAULT_CORRELATION_ID
	labels: list[RenderedLabel] = []
	for copy_index in range(1, config.quantity + 1):
		data, geometry = render_label_document(config, bounds, font)
		labels.append(
			RenderedLabel(
				filename=build_label_filename(correlation_id, copy_index),
				data=data,
				correlation_id=correlation_id,
				copy_index=copy_index,
				geometry=geometry,
			)
		)
	return labels


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
def render_batch(
	configs: list[LabelConfig],
	bounds: PageBounds = DEFAULT_PAGE_BOUNDS,
	font: LabelFont | None = None,
	verbose: bool = False,
) -> BatchResult:
	"""
	Render all copies for a list of label configurations.

	A label that fails to render or fails validation (such as an unknown
	color) is recorded by correlation id and the rest of the batch
	continues.

	Args:
		configs: Label configurations.
		bounds: Page geometry.
		font: Font for every page; resolved once when None.
		verbose: Print a progress bar.

	Returns:
		BatchResult.
	"""
	if font is None:
		font = load_label_font(resolve_font_path())
	labels: list[RenderedLabel] = []
	failures: dict[str, str] = {}
	total = len(configs)
	for index, config in enumerate(configs, start=1):
		try:
			labels.extend(render_label_copies(config, bounds, font))
		except LabelRenderError as error:
			correlation_id = error.correlation_id or config.correlation_id or f"#{index}"
			logger.error("Label %s failed to render: %s", correlation_id, error)
			failures[correlation_id] = str(error)
		except LabelValidationError as error:
			correlation_id = config.correlation_id or f"#{index}"
			logger.error("Label %s failed to render: %s", correlation_id, error)
			failures[correlation_id] = str(error)
		if verbose:
			print_progress("Labels", index, total)
	if verbose and total > 0:
		print()
	return BatchResult(labels=labels, failures=failures)


#============================================
def combine_label_pages(labels: list[RenderedLabel]) -> bytes:
	"""
	Merge rendered labels into one multi-page preview PDF.

	Args:
		labels: Rendered labels.

	Returns:
		PDF document bytes with one page per label.
	"""
	writer = pypdf.PdfWriter()
	for label in labels:
		reader = pypdf.PdfReader(io.BytesIO(label.data))
		for page in reader.pages:
			writer.add_page(page)
	buffer = io.BytesIO()
	writer.write(buffer)
	return buffer.getvalue()
