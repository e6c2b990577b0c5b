"""
Three-step pricing workflow.

State is a frozen WorkflowState value; the functions below are the only way
to move between steps. A rejected submission (or a request made from the
wrong step) returns the same state object, so callers can compare with `is`.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

from florista.images import ImageAsset
from florista.pricing import Financials, compute_financials, compute_unit_price, parse_amount


class Step(IntEnum):
    FLOWER = 1
    PRODUCT = 2
    PREVIEW = 3


STEP_TITLES = {
    Step.FLOWER: "Step 1: Unit price",
    Step.PRODUCT: "Step 2: Create product",
    Step.PREVIEW: "Step 3: Preview",
}


@dataclass(frozen=True)
class FlowerData:
    name: str
    price_per_dozen: float

    @property
    def unit_price(self) -> float:
        return compute_unit_price(self.price_per_dozen)


@dataclass(frozen=True)
class ProductData:
    name: str
    image: ImageAsset
    description: str
    sale_price: float
    flower_quantity: float

    def financials(self, flower: FlowerData) -> Financials:
        return compute_financials(self.flower_quantity, flower.unit_price, self.sale_price)


@dataclass(frozen=True)
class WorkflowState:
    step: Step = Step.FLOWER
    flower: Optional[FlowerData] = None
    product: Optional[ProductData] = None

    def financials(self) -> Optional[Financials]:
        if self.flower is None or self.product is None:
            return None
        return self.product.financials(self.flower)


def initial_state() -> WorkflowState:
    return WorkflowState()


# -------------------- Validation --------------------
def _clean(text) -> str:
    return str(text or "").strip()


def flower_input_errors(name, price_per_dozen) -> List[str]:
    errors = []
    if not _clean(name):
        errors.append("Flower name is required.")
    if compute_unit_price(price_per_dozen) <= 0:
        errors.append("Price per dozen must be a number greater than 0.")
    return errors


def product_input_errors(
    name,
    image,
    description,
    sale_price,
    flower_quantity,
    allow_fractional_quantity: bool = True,
) -> List[str]:
    errors = []
    if not _clean(name):
        errors.append("Product name is required.")
    if not image:
        errors.append("A product photo is required.")
    if not _clean(description):
        errors.append("Description is required.")
    if parse_amount(sale_price) <= 0:
        errors.append("Sale price must be a number greater than 0.")
    quantity = parse_amount(flower_quantity)
    if quantity <= 0:
        errors.append("Flower quantity must be a number greater than 0.")
    elif not allow_fractional_quantity and not quantity.is_integer():
        errors.append("Flower quantity must be a whole number.")
    return errors


# -------------------- Transitions --------------------
def submit_flower(state: WorkflowState, name, price_per_dozen) -> WorkflowState:
    if state.step != Step.FLOWER:
        return state
    if flower_input_errors(name, price_per_dozen):
        return state
    flower = FlowerData(name=_clean(name), price_per_dozen=parse_amount(price_per_dozen))
    return WorkflowState(step=Step.PRODUCT, flower=flower)


def submit_product(
    state: WorkflowState,
    name,
    image: Optional[ImageAsset],
    description,
    sale_price,
    flower_quantity,
    allow_fractional_quantity: bool = True,
) -> WorkflowState:
    if state.step != Step.PRODUCT or state.flower is None:
        return state
    if product_input_errors(name, image, description, sale_price, flower_quantity,
                            allow_fractional_quantity=allow_fractional_quantity):
        return state
    product = ProductData(
        name=_clean(name),
        image=image,
        description=_clean(description),
        sale_price=parse_amount(sale_price),
        flower_quantity=parse_amount(flower_quantity),
    )
    return WorkflowState(step=Step.PREVIEW, flower=state.flower, product=product)


def go_back(state: WorkflowState) -> WorkflowState:
    # flower data is not carried back into the step 1 form
    if state.step != Step.PRODUCT:
        return state
    return initial_state()


def reset(state: WorkflowState) -> WorkflowState:
    return initial_state()
