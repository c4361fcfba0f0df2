from fastapi import APIRouter
from fastapi.responses import Response

from widget.render_script import render_script

router = APIRouter(tags=["widget"])

# 24 часа
CACHE_CONTROL = "public, max-age=86400"


@router.get("/render.js")
def field_script():
    """Скрипт отрисовки поля, его подгружает интерфейс CRM."""
    return Response(
        content=render_script(),
        media_type="application/javascript",
        headers={"Cache-Control": CACHE_CONTROL},
    )
