# fiscal/urls.py

from django.urls import path

from fiscal.views.nfce_cancelamento_views import cancelar_nfce_view
from fiscal.views.nfce_consulta_views import consultar_nfce_view
from fiscal.views.nfce_emissao_views import emitir_nfce_view
from fiscal.views.nfce_xml_views import baixar_xml_nfce_view

app_name = "fiscal"

urlpatterns = [
    # nfce - emissão
    path("nfce/emitir/", emitir_nfce_view, name="nfce_emitir"),
    path("nfce/emitir", emitir_nfce_view),

    # nfce - operações sobre um cupom emitido
    path("nfce/<uuid:cupom_id>/consultar/", consultar_nfce_view, name="nfce_consultar"),
    path("nfce/<uuid:cupom_id>/cancelar/", cancelar_nfce_view, name="nfce_cancelar"),
    path("nfce/<uuid:cupom_id>/xml/", baixar_xml_nfce_view, name="nfce_xml"),
]
