"""
HTTP endpoint for the orders/paid webhook.
"""

# Standard Library
import logging
import typing

# PIP3 modules
import fastapi
import fastapi.concurrency
import fastapi.responses

# local repo modules
import order_label_printer as olp
import order_label_printer.delivery
import order_label_printer.render
import order_label_printer.webhook


DropboxUploader = olp.delivery.DropboxUploader
DropboxTokenProvider = olp.delivery.DropboxTokenProvider
LabelFont = olp.render.LabelFont

ORDER_PAID_PATH = "/api/order-paid"
HMAC_HEADER = "X-Shopify-Hmac-Sha256"

logger = logging.getLogger(__name__)


#============================================
def build_dropbox_uploader() -> DropboxUploader:
	"""
	Build an uploader from the DROPBOX_* environment settings.

	Returns:
		DropboxUploader.
	"""
	return DropboxUploader(DropboxTokenProvider.from_env())


#============================================
def create_app(
	uploader_factory: typing.Callable[[], typing.Any] = build_dropbox_uploader,
	font: LabelFont | None = None,
) -> fastapi.FastAPI:
	"""
	Build the webhook application.

	Args:
		uploader_factory: Returns the uploader used for one request.
		font: Font for every label; resolved per request when None.

	Returns:
		FastAPI application.
	"""
	app = fastapi.FastAPI(title="Order Label Printer")

	@app.get("/api/health")
	async def health() -> dict:
		return {"ok": True}

	@app.post(ORDER_PAID_PATH)
	async def order_paid(request: fastapi.Request) -> fastapi.responses.JSONResponse:
		# the signature covers the exact bytes Shopify sent
		raw_body = await request.body()
		header = request.headers.get(HMAC_HEADER)
		status, payload = await fastapi.concurrency.run_in_threadpool(
			olp.webhook.handle_webhook,
			raw_body,
			header,
			uploader_factory(),
			font=font,
		)
		if status != 200:
			logger.warning("%s answered %d: %s", ORDER_PAID_PATH, status, payload.get("error"))
		return fastapi.responses.JSONResponse(status_code=status, content=payload)

	return app
