"""
Formatting for the product lookup worker's JSON output.

The worker prints a single product record, optionally with the other
products of the same group:

    {
        "Categoria": "Vestido", "Codigo": "V-101", "Descripcion": "...",
        "Color": "Rojo", "Talla": "M", "Tienda": "Centro",
        "Precio de Compra": 10, "Monto": 25, "Operacion": "DISPONIBLE",
        "Image": "https://...",
        "group": "V-1", "groupProducts": [{...}, ...]
    }
"""

import json
from dataclasses import dataclass
from typing import Optional

from chatbridge.telegram_bot.logging_config import bot_logger as logger

AVAILABLE = "DISPONIBLE"
RESERVED = "APARTADO"
SOLD = "VENDIDO"

STATUS_MARKERS = {
    AVAILABLE: "✅",
    RESERVED: "🔒",
    SOLD: "❌",
}
OTHER_MARKER = "🔄"

# Rendering order for the same-group listing
GROUP_SECTIONS = [
    (AVAILABLE, "✅ Disponibles:"),
    (RESERVED, "🔒 Apartados:"),
    (SOLD, "❌ Vendidos:"),
]


@dataclass(frozen=True)
class ProductLookupMessage:
    message: str
    image_url: Optional[str] = None


def status_marker(status: Optional[str]) -> str:
    return STATUS_MARKERS.get(status, OTHER_MARKER)


def _product_line(product: dict) -> str:
    return f"{product.get('Codigo')}-{product.get('Talla')}-{product.get('Color')}-{product.get('Tienda')}"


def _group_lines(group_products: list[dict]) -> list[str]:
    by_status: dict[str, list[dict]] = {status: [] for status, _ in GROUP_SECTIONS}
    others: list[dict] = []

    for product in group_products:
        status = product.get("Operacion")
        if status in by_status:
            by_status[status].append(product)
        else:
            others.append(product)

    lines = ["", "📦 Otros del mismo grupo:"]
    for status, title in GROUP_SECTIONS:
        if by_status[status]:
            lines.append(title)
            lines.extend(_product_line(p) for p in by_status[status])

    if others:
        lines.append("🔄 Otros:")
        lines.extend(f"{_product_line(p)} [{p.get('Operacion')}]" for p in others)

    return lines


def parse_product_lookup(json_output: str, is_group: bool = False) -> ProductLookupMessage:
    """
    Build the product card sent back to the chat.

    Args:
        json_output: Raw stdout of the product lookup worker
        is_group: Group chats never see the purchase price

    Returns:
        ProductLookupMessage with the card text and optional image URL.
        Unparseable output yields an error message and no image.
    """
    try:
        data = json.loads(json_output)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        group_products = []
        if data.get("group") and isinstance(data.get("groupProducts"), list):
            group_products = [p for p in data["groupProducts"] if isinstance(p, dict)]

        lines = [
            f"👗 {data.get('Categoria')} - {data.get('Codigo')}",
            f"📝 {data.get('Descripcion')}",
            f"🎨 Color: {data.get('Color')}",
            f"📏 Talla: {data.get('Talla')}",
            "",
            f"🏪 Tienda: {data.get('Tienda')}",
            "",
        ]

        if not is_group:
            lines.append(f"💰 Precio de Compra: ${data.get('Precio de Compra')}")

        lines.append(f"💵 Precio de Venta: ${data.get('Monto')}")
        lines.append(f"{status_marker(data.get('Operacion'))} Estado: {data.get('Operacion')}")

        if group_products:
            lines.extend(_group_lines(group_products))

        return ProductLookupMessage(
            message="\n".join(lines),
            image_url=data.get("Image") or None,
        )

    except Exception as e:
        logger.error(f"Error parsing product lookup JSON: {e}")
        return ProductLookupMessage(
            message=f"Error al procesar la información del producto: {e}",
            image_url=None,
        )
