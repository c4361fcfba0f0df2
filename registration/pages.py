"""
HTML-страницы корневого маршрута. Тексты на испанском - сервис работает с испаноязычным порталом.
"""

import json
from html import escape
from typing import Any, Optional

from core.config import settings

_BASE_STYLE = "body { font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }"


def _page(title: str, body: str, extra_style: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="es">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
  <style>
    {_BASE_STYLE}
    {extra_style}
  </style>
</head>
<body>
{body}
</body>
</html>
"""


def instructions_page(host: str) -> str:
    body = f"""  <h1>Campo Personalizado "{escape(settings.FIELD_TITLE)}"</h1>
  <div class="instructions">
    <p>Para registrar el campo personalizado, accede a esta URL con tu token de Bitrix:</p>
    <pre>https://{escape(host)}/?auth=TU_TOKEN</pre>
    <p>Nota: El token lo puedes obtener desde la configuración de integraciones de Bitrix24.</p>
  </div>"""
    return _page(
        "Registro de Campo Personalizado Bitrix24",
        body,
        "pre { background: #f4f4f4; padding: 10px; border-radius: 5px; overflow-x: auto; }\n"
        "    .instructions { line-height: 1.6; }",
    )


def success_page() -> str:
    body = f"""  <h1 class="success">✅ Campo personalizado registrado correctamente</h1>
  <div class="info">
    <h2>Pasos siguientes:</h2>
    <ol>
      <li>Ve a la configuración de campos personalizados en tu CRM</li>
      <li>Añade un nuevo campo de tipo "{escape(settings.FIELD_TITLE)}" a la entidad deseada</li>
      <li>Guarda la configuración y comienza a usar el nuevo campo</li>
    </ol>
  </div>"""
    return _page(
        "Campo Registrado Correctamente",
        body,
        ".success { color: #4CAF50; font-weight: bold; }\n"
        "    .info { background: #f9f9f9; padding: 15px; border-radius: 5px; margin-top: 20px; }",
    )


def already_registered_message() -> str:
    return f"✅ El campo personalizado '{escape(settings.FIELD_TYPE_ID)}' ya está registrado."


def api_error_message(payload: Any) -> str:
    if isinstance(payload, str):
        serialized = payload
    else:
        serialized = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return f"❌ Error al registrar el campo: {escape(serialized)}"


def transport_error_page(message: str, status_code: Optional[int] = None) -> str:
    status_line = ""
    if status_code is not None:
        status_line = f"\n  <p>Código de estado del CRM: <strong>{status_code}</strong></p>"
    body = f"""  <h1>❌ Error inesperado</h1>
  <p>No se pudo completar la operación:</p>
  <p><strong>{escape(message)}</strong></p>{status_line}
  <p>Por favor, verifica tu conexión y que el dominio del CRM sea correcto.</p>"""
    return _page("Error", body)
