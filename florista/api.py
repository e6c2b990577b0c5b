from __future__ import annotations

# =========================================
# api.py
# Florista - live feedback API
# =========================================
# - Used by the step 1 / step 2 pages while the user types
# - Accepts form fields or a JSON body; numbers parse leniently (bad input -> 0)
# - Never changes the workflow state
# =========================================

from flask import Blueprint, jsonify, request

from florista.pricing import (
    compute_financials,
    compute_unit_price,
    format_money,
    format_percent,
)

api = Blueprint("api", __name__, url_prefix="/api")


def _payload() -> dict:
    if request.is_json:
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}
    return request.form.to_dict(flat=True)


@api.post("/unit-price")
def unit_price():
    """
    POST /api/unit-price
    Fields: price_per_dozen
    """
    unit = compute_unit_price(_payload().get("price_per_dozen"))
    return jsonify({
        "ok": True,
        "unit_price": unit,
        "unit_price_display": format_money(unit),
    })


@api.post("/financials")
def financials():
    """
    POST /api/financials
    Fields: flower_quantity, unit_price (or price_per_dozen), sale_price
    """
    data = _payload()
    unit = data.get("unit_price")
    if unit is None:
        unit = compute_unit_price(data.get("price_per_dozen"))

    fin = compute_financials(data.get("flower_quantity"), unit, data.get("sale_price"))
    return jsonify({
        "ok": True,
        **fin.as_dict(),
        "total_flower_cost_display": format_money(fin.total_flower_cost),
        "profit_display": format_money(fin.profit),
        "profit_margin_display": format_percent(fin.profit_margin),
        "is_loss": fin.profit < 0,
    })
