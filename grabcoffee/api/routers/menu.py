from fastapi import APIRouter

from grabcoffee.domain.menu import grouped_menu
from grabcoffee.domain.pricing import TIP_PRESETS
from grabcoffee.domain.schemas import MenuOut
from grabcoffee.utils.settings import TAX_RATE

router = APIRouter(prefix="/api/menu", tags=["menu"])


@router.get("", response_model=MenuOut)
def get_menu():
    return {
        "groups": grouped_menu(),
        "tax_rate": TAX_RATE,
        "tip_presets": list(TIP_PRESETS),
    }
