"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses

# local repo modules
import order_label_printer as olp
import order_label_printer.errors


LabelValidationError = olp.errors.LabelValidationError

# 1 mm in PDF points (72 / 25.4)
MM_TO_PT = 2.834645669

PAGE_WIDTH_MM = 270.0
PAGE_HEIGHT_MM = 60.0
ORDER_COLUMN_WIDTH_MM = 10.0
TEXT_AREA_WIDTH_MM = 250.0
TEXT_AREA_HEIGHT_MM = 54.0

MIN_FONT_SIZE_PT = 20.0
MAX_FONT_SIZE_PT = 800.0
MAX_FIT_ITERATIONS = 6
FIT_TOLERANCE_PT = 1e-9
FIT_SHRINK_MARGIN = 1e-4
ORDER_NUMBER_FONT_SIZE_PT = 20.0
DEFAULT_FONT_SIZE_HINT_PT = 156.0
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_CORRELATION_ID = "cfg"

PRIMARY_FONT_NAME = "Impact"
FALLBACK_FONT_NAME = "Helvetica-Bold"
FONT_PATH_ENV = "IMPACT_FONT_PATH"
DROPBOX_ROOT_ENV = "DROPBOX_ROOT_PATH"
DEFAULT_DROPBOX_ROOT = "/Labels"
WEBHOOK_SECRET_ENV = "SHOPIFY_WEBHOOK_SECRET"
PORT_ENV = "PORT"
DEFAULT_PORT = 3000

PROGRESS_BAR_WIDTH = 20


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimeters to points.

	Args:
		value: Millimeter value.

	Returns:
		Points value.
	"""
	return value * MM_TO_PT


@dataclasses.dataclass(frozen=True)
class FontCalibration:
	"""
	Per-font metric constants.

	cap_height_ratio is used only when the font face does not expose a
	cap height. ascent_fraction is the share of the visible glyph height
	that sits above the baseline-to-center offset. digit_spacing_factor
	scales the digit font size into the center-to-center step of the
	order number column.
	"""
	font_name: str
	cap_height_ratio: float
	ascent_fraction: float
	digit_spacing_factor: float


# Impact OS/2 cap height is 1619 / 2048 units
IMPACT_CALIBRATION = FontCalibration(
	font_name=PRIMARY_FONT_NAME,
	cap_height_ratio=0.79,
	ascent_fraction=0.5,
	digit_spacing_factor=0.85,
)

# Helvetica-Bold AFM CapHeight is 718 / 1000 units
HELVETICA_BOLD_CALIBRATION = FontCalibration(
	font_name=FALLBACK_FONT_NAME,
	cap_height_ratio=0.718,
	ascent_fraction=0.5,
	digit_spacing_factor=0.85,
)


@dataclasses.dataclass(frozen=True)
class PageBounds:
	"""
	Fixed page geometry in points.

	The order number column runs the full page height at the left edge.
	The text area is centered in the space right of the column.
	"""
	page_width: float
	page_height: float
	column_width: float
	text_area_width: float
	text_area_height: float

	@property
	def column_x(self) -> float:
		return 0.0

	@property
	def column_y(self) -> float:
		return 0.0

	@property
	def column_height(self) -> float:
		return self.page_height

	@property
	def text_area_x(self) -> float:
		padding = (self.page_width - self.column_width - self.text_area_width) / 2.0
		return self.column_width + padding

	@property
	def text_area_y(self) -> float:
		return (self.page_height - self.text_area_height) / 2.0

	@property
	def text_center_y(self) -> float:
		return self.text_area_y + self.text_area_height / 2.0

	def text_area_box(self) -> tuple[float, float, float, float]:
		"""
		Return the text area as (x0, y0, x1, y1).
		"""
		return (
			self.text_area_x,
			self.text_area_y,
			self.text_area_x + self.text_area_width,
			self.text_area_y + self.text_area_height,
		)

	def column_box(self) -> tuple[float, float, float, float]:
		"""
		Return the order number column as (x0, y0, x1, y1).
		"""
		return (
			self.column_x,
			self.column_y,
			self.column_x + self.column_width,
			self.column_y + self.column_height,
		)


DEFAULT_PAGE_BOUNDS = PageBounds(
	page_width=mm_to_points(PAGE_WIDTH_MM),
	page_height=mm_to_points(PAGE_HEIGHT_MM),
	column_width=mm_to_points(ORDER_COLUMN_WIDTH_MM),
	text_area_width=mm_to_points(TEXT_AREA_WIDTH_MM),
	text_area_height=mm_to_points(TEXT_AREA_HEIGHT_MM),
)


@dataclasses.dataclass(frozen=True)
class LabelConfig:
	text: str
	font_size_hint: float = DEFAULT_FONT_SIZE_HINT_PT
	font_family: str = ""
	color: str = DEFAULT_TEXT_COLOR
	quantity: int = 1
	correlation_id: str = ""
	order_number: str | None = None

	def __post_init__(self) -> None:
		if not isinstance(self.text, str) or not self.text.strip():
			raise LabelValidationError("Label text is required.")
		if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
			raise LabelValidationError(f"Quantity must be an integer, got {self.quantity!r}.")
		if self.quantity < 1:
			raise LabelValidationError(f"Quantity must be at least 1, got {self.quantity}.")


@dataclasses.dataclass(frozen=True)
class GlyphFitResult:
	"""
	Solved size and measured ink of one line of text.

	measured_visible_height_pt is the real vertical ink extent of the
	string at font_size_pt. ink_bottom_pt is where that ink starts
	relative to the baseline (negative below it).
	"""
	font_size_pt: float
	measured_width_pt: float
	measured_visible_height_pt: float
	ink_bottom_pt: float = 0.0


@dataclasses.dataclass(frozen=True)
class DigitPlacement:
	"""
	Placement of one rotated order number digit.

	Footprint sizes are measured after rotation: footprint_width is the
	page-horizontal extent (the glyph cap height) and footprint_height is
	the page-vertical extent (the glyph advance width).

	rotation_degrees follows the clockwise-positive, y-down convention of
	screen canvases: -90 is a quarter turn counter-clockwise on the page,
	leaving the glyph top facing the left edge. ReportLab draws it with
	rotate(-rotation_degrees).
	"""
	character: str
	rotation_degrees: float
	center_x: float
	center_y: float
	footprint_width: float
	footprint_height: float
	font_size_pt: float
