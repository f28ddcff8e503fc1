"""
Order line item parsing into label configurations.
"""

# Standard Library
import datetime
import logging
import math
import re
import typing

# local repo modules
import order_label_printer as olp
import order_label_printer.config
import order_label_printer.errors
import order_label_printer.render


LabelConfig = olp.config.LabelConfig
LabelValidationError = olp.errors.LabelValidationError

DEFAULT_FONT_SIZE_HINT_PT = olp.config.DEFAULT_FONT_SIZE_HINT_PT
DEFAULT_TEXT_COLOR = olp.config.DEFAULT_TEXT_COLOR

ATTRIBUTE_FIELDS = {
	"label_text": "text",
	"label_font_size_pt": "font_size_hint",
	"label_font_family": "font_family",
	"label_color": "color",
	"label_config_id": "correlation_id",
	"label_order_number": "order_number",
}

UNSAFE_PATH_CHARS = re.compile(r'[\\/:*?"<>|]')
WHITESPACE_RUN = re.compile(r"\s+")

logger = logging.getLogger(__name__)


#============================================
def parse_font_size_hint(value: typing.Any) -> float:
	"""
	Parse the advisory font size attribute.

	Args:
		value: Raw attribute value.

	Returns:
		Font size in points, or the default when unparseable.
	"""
	try:
		size = float(value)
	except (TypeError, ValueError):
		return DEFAULT_FONT_SIZE_HINT_PT
	if not math.isfinite(size) or size <= 0.0:
		return DEFAULT_FONT_SIZE_HINT_PT
	return size


#============================================
def parse_quantity(value: typing.Any) -> int:
	"""
	Parse a line item quantity, defaulting to one copy.

	Args:
		value: Raw quantity.

	Returns:
		Quantity of at least 1.
	"""
	try:
		quantity = int(value)
	except (TypeError, ValueError):
		return 1
	return max(1, quantity)


#============================================
def parse_color_attribute(value: typing.Any, line_item_id: typing.Any = None) -> str:
	"""
	Validate the color attribute, defaulting unknown colors to black.

	Args:
		value: Raw attribute value.
		line_item_id: Line item id for the warning.

	Returns:
		Color string the renderer accepts.
	"""
	if value is None or not str(value).strip():
		return DEFAULT_TEXT_COLOR
	color = str(value).strip()
	try:
		olp.render.parse_label_color(color)
	except LabelValidationError as error:
		logger.warning("Line item %s: %s Using %s.", line_item_id, error, DEFAULT_TEXT_COLOR)
		return DEFAULT_TEXT_COLOR
	return color


#============================================
def read_line_item_attributes(line_item: dict) -> dict[str, typing.Any]:
	"""
	Collect label attributes from a line item.

	GraphQL payloads use customAttributes with key/value entries; REST
	payloads use properties with name/value entries.

	Args:
		line_item: Line item mapping.

	Returns:
		Mapping of LabelConfig field name to raw value.
	"""
	attributes = line_item.get("customAttributes") or line_item.get("properties") or []
	fields: dict[str, typing.Any] = {}
	for attribute in attributes:
		if not isinstance(attribute, dict):
			continue
		key = attribute.get("key") or attribute.get("name")
		field_name = ATTRIBUTE_FIELDS.get(key)
		if field_name is None:
			continue
		fields[field_name] = attribute.get("value")
	return fields


#============================================
def extract_label_configs(order: dict | None) -> list[LabelConfig]:
	"""
	Extract label configurations from an order payload.

	Line items without label text are skipped.

	Args:
		order: Order mapping (GraphQL or REST shape).

	Returns:
		LabelConfig per labelled line item.
	"""
	configs: list[LabelConfig] = []
	if not order:
		return configs
	line_items = order.get("lineItems") or order.get("line_items") or []
	if isinstance(line_items, dict):
		# GraphQL connection shape
		line_items = [edge.get("node", {}) for edge in line_items.get("edges", [])]

	for line_item in line_items:
		fields = read_line_item_attributes(line_item)
		text = fields.get("text")
		if not isinstance(text, str) or not text.strip():
			continue
		order_number = fields.get("order_number") or order.get("name")
		try:
			config = LabelConfig(
				text=text,
				font_size_hint=parse_font_size_hint(fields.get("font_size_hint")),
				font_family=str(fields.get("font_family") or ""),
				color=parse_color_attribute(fields.get("color"), line_item.get("id")),
				quantity=parse_quantity(line_item.get("quantity")),
				correlation_id=str(fields.get("correlation_id") or ""),
				order_number=str(order_number) if order_number is not None else None,
			)
		except LabelValidationError as error:
			logger.warning("Skipping line item %s: %s", line_item.get("id"), error)
			continue
		configs.append(config)
	return configs


#============================================
def sanitize_path_name(name: str) -> str:
	"""
	Make an order name safe for a remote folder path.

	Args:
		name: Raw order name like "#1042".

	Returns:
		Sanitized name.
	"""
	value = UNSAFE_PATH_CHARS.sub("-", name)
	value = value.replace("#", "")
	value = WHITESPACE_RUN.sub(" ", value)
	return value.strip()


#============================================
def build_order_folder_path(order: dict, root: str) -> str:
	"""
	Build the dated folder path for an order's labels.

	Args:
		order: Order mapping.
		root: Root folder such as "/Labels".

	Returns:
		Path like "/Labels/2024-05-01/1042".
	"""
	raw_name = order.get("name") or f"Order-{order.get('id') or 'unknown'}"
	order_name = sanitize_path_name(str(raw_name))
	created_at = order.get("created_at") or order.get("createdAt")
	if not created_at:
		created_at = datetime.datetime.now(datetime.timezone.utc).isoformat()
	date = str(created_at)[:10]
	return f"{root.rstrip('/')}/{date}/{order_name}"
