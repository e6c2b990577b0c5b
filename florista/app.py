import os
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import (
    Flask, render_template, request, redirect, url_for,
    flash, session, send_file, abort, current_app
)

from florista.images import CameraError, ImageAsset, capture_photo, decode_upload
from florista.opencv_camera import OpenCVCamera
from florista.pdf_utils import build_cost_sheet_pdf_bytes
from florista.preview_utils import (
    Branding, PreviewRenderError, card_png_bytes, export_filename, share_filename
)
from florista.pricing import format_money, format_percent, format_quantity
from florista.session_store import RecordStore
from florista.share_utils import EmailShareTarget, share_or_download
from florista.workflow import (
    STEP_TITLES, Step, WorkflowState, flower_input_errors, go_back, initial_state,
    product_input_errors, reset, submit_flower, submit_product,
)

load_dotenv()

BASE_DIR = Path(__file__).parent.resolve()


def _env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(key: str, default: Optional[int] = None) -> Optional[int]:
    val = (os.getenv(key) or "").strip()
    return int(val) if val else default


# --- Flask app ---------------------------------------------------------------
app = Flask(
    __name__,
    template_folder=str(BASE_DIR / "templates"),
)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-change-me")

# --- Branding / behaviour (env or .env) --------------------------------------
app.config["BUSINESS_NAME"] = os.getenv("BUSINESS_NAME", "Claudia Segura")
app.config["BUSINESS_PHONE"] = os.getenv("BUSINESS_PHONE", "55 4917 1408")
app.config["ALLOW_FRACTIONAL_QUANTITY"] = _env_bool("ALLOW_FRACTIONAL_QUANTITY", True)
# Host camera capture is off unless a device index is given
app.config["CAMERA_DEVICE_INDEX"] = _env_int("CAMERA_DEVICE_INDEX")
app.config["CAMERA_FACTORY"] = OpenCVCamera
# Workflow store limits
app.config["SESSION_MAX_RECORDS"] = _env_int("SESSION_MAX_RECORDS", 500)
app.config["SESSION_IDLE_MINUTES"] = _env_int("SESSION_IDLE_MINUTES", 120)

app.logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

from florista.api import api  # noqa: E402
app.register_blueprint(api)

STEP_ENDPOINTS = {
    Step.FLOWER: "step_flower",
    Step.PRODUCT: "step_product",
    Step.PREVIEW: "step_preview",
}


# --- Workflow sessions -------------------------------------------------------
# In-process only; a restart starts everyone over at step 1.
@dataclass
class SessionRecord:
    state: WorkflowState = field(default_factory=initial_state)
    draft_image: Optional[ImageAsset] = None
    draft_fields: dict = field(default_factory=dict)
    # (product, png) of the last rendered card
    card: Optional[tuple] = None

    def clear_drafts(self):
        self.draft_image = None
        self.draft_fields = {}


_RECORDS = RecordStore(
    max_records=app.config["SESSION_MAX_RECORDS"],
    idle_seconds=app.config["SESSION_IDLE_MINUTES"] * 60,
)


def load_record() -> SessionRecord:
    """
    The browser's stored record, or a fresh one that is not stored.
    A record is only kept once step 1 has been submitted (see keep_record).
    """
    record = _RECORDS.get(session.get("workflow_id"))
    return record if record is not None else SessionRecord()


def keep_record(record: SessionRecord):
    if _RECORDS.get(session.get("workflow_id")) is not record:
        session["workflow_id"] = _RECORDS.add(record)


def forget_record():
    _RECORDS.discard(session.pop("workflow_id", None))


def _redirect_to_current(record: SessionRecord):
    return redirect(url_for(STEP_ENDPOINTS[record.state.step]))


def _branding() -> Branding:
    return Branding(
        business_name=app.config["BUSINESS_NAME"],
        phone=app.config["BUSINESS_PHONE"],
    )


def _card_png(record: SessionRecord) -> bytes:
    """Renders the PREVIEW card once per product; raises PreviewRenderError."""
    product = record.state.product
    if record.card is None or record.card[0] is not product:
        record.card = (product, card_png_bytes(product, branding=_branding()))
    return record.card[1]


PRODUCT_FIELDS = ("product_name", "description", "flower_quantity", "sale_price")


def _product_form() -> dict:
    return {k: request.form.get(k, "") for k in PRODUCT_FIELDS}


# --- Filters -----------------------------------------------------------------
@app.template_filter("money")
def money_filter(v):
    return f"${format_money(v)}"


@app.template_filter("percent")
def percent_filter(v):
    return format_percent(v)


@app.template_filter("qty")
def qty_filter(v):
    return format_quantity(v)


@app.context_processor
def inject_globals():
    return {"STEPS": list(Step), "STEP_TITLES": STEP_TITLES, "branding": _branding()}


# --- Step dispatch -----------------------------------------------------------
@app.get("/")
def index():
    return _redirect_to_current(load_record())


# --- Step 1: unit price ------------------------------------------------------
@app.route("/step/1", methods=["GET", "POST"])
def step_flower():
    record = load_record()
    if record.state.step != Step.FLOWER:
        return _redirect_to_current(record)

    form = {"flower_name": "", "price_per_dozen": ""}
    if request.method == "POST":
        form = {
            "flower_name": request.form.get("flower_name", ""),
            "price_per_dozen": request.form.get("price_per_dozen", ""),
        }
        errors = flower_input_errors(form["flower_name"], form["price_per_dozen"])
        if not errors:
            record.state = submit_flower(record.state, form["flower_name"], form["price_per_dozen"])
            keep_record(record)
            app.logger.info("Flower priced: %s at %s/unit",
                            record.state.flower.name, format_money(record.state.flower.unit_price))
            return redirect(url_for("step_product"))
        for msg in errors:
            flash(msg, "error")

    return render_template("step1.html", step=Step.FLOWER, form=form)


# --- Step 2: product ---------------------------------------------------------
@app.route("/step/2", methods=["GET", "POST"])
def step_product():
    record = load_record()
    if record.state.step != Step.PRODUCT:
        return _redirect_to_current(record)

    if request.method == "POST":
        record.draft_fields = _product_form()
        upload = decode_upload(request.files.get("photo"))
        if upload:
            record.draft_image = upload

        f = record.draft_fields
        allow_fractional = app.config["ALLOW_FRACTIONAL_QUANTITY"]
        errors = product_input_errors(
            f["product_name"], record.draft_image, f["description"],
            f["sale_price"], f["flower_quantity"],
            allow_fractional_quantity=allow_fractional,
        )
        if errors:
            for msg in errors:
                flash(msg, "error")
            return redirect(url_for("step_product"))

        record.state = submit_product(
            record.state, f["product_name"], record.draft_image, f["description"],
            f["sale_price"], f["flower_quantity"],
            allow_fractional_quantity=allow_fractional,
        )
        record.clear_drafts()
        app.logger.info("Product created: %s", record.state.product.name)
        return redirect(url_for("step_preview"))

    return render_template(
        "step2.html",
        step=Step.PRODUCT,
        flower=record.state.flower,
        form=record.draft_fields or {k: "" for k in PRODUCT_FIELDS},
        has_photo=bool(record.draft_image),
        host_camera=app.config.get("CAMERA_DEVICE_INDEX") is not None,
        allow_fractional=app.config["ALLOW_FRACTIONAL_QUANTITY"],
    )


@app.post("/step/2/photo")
def attach_photo():
    record = load_record()
    if record.state.step != Step.PRODUCT:
        return _redirect_to_current(record)

    record.draft_fields = _product_form()
    camera_uri = request.form.get("camera_image", "").strip()
    if camera_uri:
        try:
            record.draft_image = ImageAsset.from_data_uri(camera_uri)
        except ValueError:
            current_app.logger.exception("Invalid camera snapshot")
            flash("The camera photo could not be read. Please try again.", "error")
    else:
        upload = decode_upload(request.files.get("photo"))
        if upload:
            record.draft_image = upload
    return redirect(url_for("step_product"))


@app.post("/step/2/photo/camera")
def capture_host_photo():
    record = load_record()
    if record.state.step != Step.PRODUCT:
        return _redirect_to_current(record)

    index = app.config.get("CAMERA_DEVICE_INDEX")
    if index is None:
        abort(404)

    record.draft_fields = _product_form()
    device = app.config["CAMERA_FACTORY"](index)
    try:
        record.draft_image = capture_photo(device)
    except CameraError as e:
        current_app.logger.warning("Camera capture failed: %s", e)
        flash("Could not access the camera. Allow access or upload a photo instead.", "error")
    return redirect(url_for("step_product"))


@app.post("/step/2/photo/clear")
def clear_photo():
    record = load_record()
    if record.state.step != Step.PRODUCT:
        return _redirect_to_current(record)
    record.draft_fields = _product_form()
    record.draft_image = None
    return redirect(url_for("step_product"))


@app.post("/step/2/back")
def step_back():
    record = load_record()
    record.state = go_back(record.state)
    record.clear_drafts()
    if record.state.step == Step.FLOWER:
        forget_record()
    return _redirect_to_current(record)


# --- Step 3: preview ---------------------------------------------------------
@app.get("/step/3")
def step_preview():
    record = load_record()
    if record.state.step != Step.PREVIEW:
        return _redirect_to_current(record)

    card_ok = True
    try:
        _card_png(record)
    except PreviewRenderError:
        current_app.logger.exception("Card preview failed")
        flash("The preview image could not be generated from this photo. "
              "Start over with a different photo.", "error")
        card_ok = False

    state = record.state
    return render_template(
        "step3.html",
        step=Step.PREVIEW,
        flower=state.flower,
        product=state.product,
        fin=state.financials(),
        card_ok=card_ok,
    )


@app.get("/step/3/card.png")
def card_png():
    record = load_record()
    if record.state.step != Step.PREVIEW:
        abort(404)
    try:
        png = _card_png(record)
    except PreviewRenderError:
        current_app.logger.exception("Card render failed")
        abort(500)
    return send_file(BytesIO(png), mimetype="image/png")


@app.post("/step/3/export")
def export_card():
    record = load_record()
    if record.state.step != Step.PREVIEW:
        return _redirect_to_current(record)

    product = record.state.product
    try:
        png = _card_png(record)
    except PreviewRenderError:
        current_app.logger.exception("Card export failed")
        flash("Could not generate the image. Please try again.", "error")
        return redirect(url_for("step_preview"))

    return send_file(
        BytesIO(png), mimetype="image/png",
        as_attachment=True, download_name=export_filename(product.name),
    )


@app.post("/step/3/share")
def share_card():
    record = load_record()
    if record.state.step != Step.PREVIEW:
        return _redirect_to_current(record)

    product = record.state.product
    try:
        png = _card_png(record)
    except PreviewRenderError:
        current_app.logger.exception("Card render for sharing failed")
        flash("Could not generate the image. Please try again.", "error")
        return redirect(url_for("step_preview"))

    target = EmailShareTarget(request.form.get("share_to", ""), app=current_app)
    outcome = share_or_download(
        target, title=product.name, text=product.description,
        filename=share_filename(product.name), data=png,
    )
    if outcome.shared:
        flash(f"Sent to {target.recipient}.", "success")
        return redirect(url_for("step_preview"))

    if outcome.error:
        current_app.logger.warning("Share failed, falling back to download: %s", outcome.error)
    return send_file(
        BytesIO(png), mimetype="image/png",
        as_attachment=True, download_name=export_filename(product.name),
    )


@app.get("/step/3/cost-sheet.pdf")
def cost_sheet():
    record = load_record()
    if record.state.step != Step.PREVIEW:
        return _redirect_to_current(record)

    state = record.state
    pdf = build_cost_sheet_pdf_bytes(state.flower, state.product, branding=_branding())
    name = export_filename(state.product.name).rsplit(".", 1)[0] + "-costs.pdf"
    return send_file(BytesIO(pdf), mimetype="application/pdf", as_attachment=True, download_name=name)


@app.post("/step/3/reset")
def step_reset():
    record = load_record()
    record.state = reset(record.state)
    record.clear_drafts()
    forget_record()
    return redirect(url_for("step_flower"))


# --- Photo serving -----------------------------------------------------------
@app.get("/uploads/photo")
def uploaded_photo():
    record = load_record()
    image = record.draft_image
    if record.state.step == Step.PREVIEW:
        image = record.state.product.image
    if not image:
        abort(404)
    return send_file(BytesIO(image.data), mimetype=image.mime_type)


# --- Dev entry ---------------------------------------------------------------
if __name__ == "__main__":
    # flask --app florista.app run --debug   (from project root), or:
    app.run(debug=True)
