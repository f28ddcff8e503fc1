"""
Order-paid webhook handling.
"""

# Standard Library
import base64
import dataclasses
import hashlib
import hmac
import json
import logging
import os

# local repo modules
import order_label_printer as olp
import order_label_printer.config
import order_label_printer.delivery
import order_label_printer.errors
import order_label_printer.orders
import order_label_printer.render


DropboxUploader = olp.delivery.DropboxUploader
DeliveryError = olp.errors.DeliveryError
LabelFont = olp.render.LabelFont

DROPBOX_ROOT_ENV = olp.config.DROPBOX_ROOT_ENV
DEFAULT_DROPBOX_ROOT = olp.config.DEFAULT_DROPBOX_ROOT
WEBHOOK_SECRET_ENV = olp.config.WEBHOOK_SECRET_ENV

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class OrderResult:
	folder_path: str
	files: list[str]
	failures: dict[str, str]


#============================================
def verify_shopify_hmac(
	raw_body: bytes,
	secret: str | None,
	header: str | list[str] | None,
) -> bool:
	"""
	Verify the X-Shopify-Hmac-Sha256 signature of a webhook body.

	Args:
		raw_body: Unparsed request body.
		secret: Webhook signing secret.
		header: Header value (first entry used when repeated).

	Returns:
		True when the signature matches.
	"""
	if not secret or not header:
		return False
	if isinstance(header, (list, tuple)):
		header = header[0]
	digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
	expected = base64.b64encode(digest)
	return hmac.compare_digest(expected, header.strip().encode("utf-8"))


#============================================
def handle_order_paid(
	order: dict,
	uploader: DropboxUploader,
	root: str | None = None,
	font: LabelFont | None = None,
) -> OrderResult:
	"""
	Render every label copy of an order and upload them.

	Args:
		order: Order payload.
		uploader: Dropbox uploader.
		root: Root folder; DROPBOX_ROOT_PATH or /Labels when None.
		font: Font for every page; resolved once when None.

	Returns:
		OrderResult.
	"""
	if root is None:
		root = os.environ.get(DROPBOX_ROOT_ENV) or DEFAULT_DROPBOX_ROOT
	folder_path = olp.orders.build_order_folder_path(order, root)
	configs = olp.orders.extract_label_configs(order)
	if not configs:
		logger.info("No label configurations in order %s", order.get("name") or order.get("id"))
		return OrderResult(folder_path=folder_path, files=[], failures={})

	batch = olp.render.render_batch(configs, font=font)
	files: list[str] = []
	if batch.labels:
		files = uploader.upload_labels(folder_path, batch.labels)
	return OrderResult(folder_path=folder_path, files=files, failures=batch.failures)


#============================================
def handle_webhook(
	raw_body: bytes,
	header: str | list[str] | None,
	uploader: DropboxUploader,
	secret: str | None = None,
	root: str | None = None,
	font: LabelFont | None = None,
) -> tuple[int, dict]:
	"""
	Process one orders/paid webhook request.

	Args:
		raw_body: Unparsed request body.
		header: X-Shopify-Hmac-Sha256 header value.
		uploader: Dropbox uploader.
		secret: Webhook secret; SHOPIFY_WEBHOOK_SECRET when None.
		root: Root folder for uploads.
		font: Font for every page; resolved once when None.

	Returns:
		Tuple of (http_status, json_payload).
	"""
	if secret is None:
		secret = os.environ.get(WEBHOOK_SECRET_ENV, "")
	if not verify_shopify_hmac(raw_body, secret, header):
		return (401, {"ok": False, "error": "Unauthorized"})
	try:
		order = json.loads(raw_body.decode("utf-8"))
	except (UnicodeDecodeError, json.JSONDecodeError) as error:
		return (400, {"ok": False, "error": f"Malformed order payload: {error}"})
	if not isinstance(order, dict):
		return (400, {"ok": False, "error": "Malformed order payload: expected an object"})
	try:
		result = handle_order_paid(order, uploader, root=root, font=font)
	except DeliveryError as error:
		logger.error("orders/paid delivery error: %s", error)
		return (500, {"ok": False, "error": error.error_summary or str(error)})
	payload = {"ok": True, "folderPath": result.folder_path, "files": result.files}
	if result.failures:
		payload["failures"] = result.failures
	return (200, payload)
