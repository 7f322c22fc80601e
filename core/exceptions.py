# core/exceptions.py

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from inventory.exceptions import LedgerError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    EXCEPTION_HANDLER de DRF.
    Los errores del StockLedger salen como {"kind", "detail", ...contexto};
    el resto usa el formato por defecto de DRF.
    """
    if isinstance(exc, LedgerError):
        view = context.get('view')
        logger.info(
            "%s en %s: %s", exc.kind, type(view).__name__ if view else '-', exc.message
        )
        return Response(exc.as_dict(), status=exc.status_code)

    return exception_handler(exc, context)
