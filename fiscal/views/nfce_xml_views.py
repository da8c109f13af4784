# fiscal/views/nfce_xml_views.py

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from fiscal.exceptions import FiscalError
from fiscal.serializers_consulta import XmlNfceOutputSerializer
from fiscal.services.download_service import baixar_xml

logger = logging.getLogger("pdv.fiscal")


@extend_schema(responses={200: XmlNfceOutputSerializer})
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def baixar_xml_nfce_view(request, cupom_id):
    """GET /api/v1/fiscal/nfce/<cupom_id>/xml/"""
    try:
        xml = baixar_xml(user=request.user, cupom_id=cupom_id)
    except FiscalError as exc:
        logger.warning(
            "nfce_download_xml_indisponivel",
            extra={
                "event": "nfce_download_xml",
                "user_id": getattr(request.user, "id", None),
                "cupom_id": str(cupom_id),
                "code": exc.codigo,
                "outcome": "not_available",
            },
        )
        raise

    return Response(XmlNfceOutputSerializer({"xml": xml}).data, status=status.HTTP_200_OK)
