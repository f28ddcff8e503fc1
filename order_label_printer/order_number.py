"""
Vertical order number column.
"""

# PIP3 modules
import reportlab.pdfgen.canvas

# local repo modules
import order_label_printer as olp
import order_label_printer.config
import order_label_printer.layout


DigitPlacement = olp.config.DigitPlacement
MeasureFunc = olp.layout.MeasureFunc

FALLBACK_FONT_NAME = olp.config.FALLBACK_FONT_NAME
ORDER_NUMBER_FONT_SIZE_PT = olp.config.ORDER_NUMBER_FONT_SIZE_PT
DEFAULT_SPACING_FACTOR = olp.config.HELVETICA_BOLD_CALIBRATION.digit_spacing_factor
DEFAULT_CAP_HEIGHT_RATIO = olp.config.HELVETICA_BOLD_CALIBRATION.cap_height_ratio
# clockwise-positive, y-down page convention: -90 is a quarter turn counter-clockwise
DIGIT_ROTATION_DEGREES = -90.0


#============================================
def extract_digits(order_number: str | None) -> str:
	"""
	Keep only the ASCII digits of an order number.

	Args:
		order_number: Raw order number such as "#1042".

	Returns:
		Digit string, possibly empty.
	"""
	if not order_number:
		return ""
	return "".join(char for char in order_number if char in "0123456789")


#============================================
def fit_digit_font_size(
	digits: str,
	column_width: float,
	column_height: float,
	font_size: float,
	font_name: str,
	cap_height_ratio: float,
	spacing_factor: float,
	measure: MeasureFunc,
) -> float:
	"""
	Shrink the digit size until the rotated stack fits the column.

	Args:
		digits: Digit string.
		column_width: Column width in points.
		column_height: Column height in points.
		font_size: Requested digit font size.
		font_name: Registered ReportLab font name.
		cap_height_ratio: Visible glyph height per point of font size.
		spacing_factor: Center-to-center step per point of font size.
		measure: Width measurement function.

	Returns:
		Font size in points.
	"""
	scale = 1.0
	# after rotation the cap height spans the column width
	visible_width = font_size * cap_height_ratio
	if visible_width > column_width:
		scale = min(scale, column_width / visible_width)
	max_advance = max(measure(char, font_name, font_size) for char in digits)
	stack_height = font_size * spacing_factor * (len(digits) - 1) + max_advance
	if stack_height > column_height:
		scale = min(scale, column_height / stack_height)
	return font_size * scale


#============================================
def layout_order_number(
	order_number: str | None,
	column_width: float,
	column_height: float,
	digit_font_size: float = ORDER_NUMBER_FONT_SIZE_PT,
	font_name: str = FALLBACK_FONT_NAME,
	cap_height_ratio: float = DEFAULT_CAP_HEIGHT_RATIO,
	spacing_factor: float = DEFAULT_SPACING_FACTOR,
	column_x: float = 0.0,
	column_y: float = 0.0,
	measure: MeasureFunc | None = None,
) -> list[DigitPlacement]:
	"""
	Place order number digits as a rotated, centered vertical stack.

	The first digit of the order number is placed at the top of the
	column and the last digit at the bottom. The stack is centered so the
	top and bottom margins (measured at digit centers) are equal.

	Args:
		order_number: Raw order number; non-digits are dropped.
		column_width: Column width in points.
		column_height: Column height in points.
		digit_font_size: Requested digit font size in points.
		font_name: Registered ReportLab font name.
		cap_height_ratio: Visible glyph height per point of font size.
		spacing_factor: Center-to-center step per point of font size.
		column_x: Column left edge.
		column_y: Column bottom edge.
		measure: Optional width measurement function.

	Returns:
		Placements ordered as the digits appear in the order number.
	"""
	digits = extract_digits(order_number)
	if not digits:
		return []
	if column_width <= 0.0 or column_height <= 0.0:
		raise ValueError(f"Order number column must be positive, got {column_width:.2f} x {column_height:.2f}.")
	if measure is None:
		measure = olp.layout.measure_string_width

	font_size = fit_digit_font_size(
		digits,
		column_width,
		column_height,
		digit_font_size,
		font_name,
		cap_height_ratio,
		spacing_factor,
		measure,
	)
	spacing = font_size * spacing_factor
	last_index = len(digits) - 1
	total_span = spacing * last_index
	bottom_center_y = column_y + (column_height - total_span) / 2.0
	center_x = column_x + column_width / 2.0

	placements: list[DigitPlacement] = []
	for index, char in enumerate(digits):
		placements.append(
			DigitPlacement(
				character=char,
				rotation_degrees=DIGIT_ROTATION_DEGREES,
				center_x=center_x,
				center_y=bottom_center_y + spacing * (last_index - index),
				footprint_width=font_size * cap_height_ratio,
				footprint_height=measure(char, font_name, font_size),
				font_size_pt=font_size,
			)
		)
	return placements


#============================================
def read_stack_top_to_bottom(placements: list[DigitPlacement]) -> str:
	"""
	Read a placed digit stack from the top of the column down.

	Args:
		placements: Digit placements.

	Returns:
		Digit string.
	"""
	ordered = sorted(placements, key=lambda placement: placement.center_y, reverse=True)
	return "".join(placement.character for placement in ordered)


#============================================
def draw_order_number(
	pdf: reportlab.pdfgen.canvas.Canvas,
	placements: list[DigitPlacement],
	font_name: str,
) -> None:
	"""
	Draw placed digits onto the PDF canvas.

	Each digit is turned a quarter turn counter-clockwise about its own
	center, so the glyph top faces the left edge and the digits read
	upward. The glyph is offset by its rotated footprint so the ink is
	centered on the pivot.

	Args:
		pdf: ReportLab canvas.
		placements: Digit placements from layout_order_number.
		font_name: Registered ReportLab font name.
	"""
	for placement in placements:
		pdf.saveState()
		pdf.translate(placement.center_x, placement.center_y)
		# ReportLab angles are counter-clockwise-positive with y up
		pdf.rotate(-placement.rotation_degrees)
		pdf.setFont(font_name, placement.font_size_pt)
		# rotated frame: advance runs along local x, cap height along local y
		pdf.drawString(
			-placement.footprint_height / 2.0,
			-placement.footprint_width / 2.0,
			placement.character,
		)
		pdf.restoreState()
