"""
Tests para el catálogo de servicios
"""

from decimal import Decimal

import pytest

from pos_api.modules.services.models import Service
from pos_api.modules.services.service import ServiceCatalogService, MAX_SUGGESTIONS


@pytest.fixture
def sample_services(db_session):
    services = [
        Service(name="Formateo de laptop", price=Decimal("350.00")),
        Service(name="Instalación de antivirus", price=Decimal("150.00")),
        Service(name="Reparación de pantalla", price=Decimal("0"), fixed_price=False),
        Service(name="Formateo de PC (descontinuado)", price=Decimal("300.00"), is_active=False),
    ]
    db_session.add_all(services)
    db_session.commit()
    return services


class TestServiceCatalog:
    """Tests para ServiceCatalogService.suggest"""

    def test_case_insensitive_match(self, db_session, sample_services):
        names = [s.name for s in ServiceCatalogService(db_session).suggest("FORMATEO")]
        assert names == ["Formateo de laptop"]

    def test_substring_match(self, db_session, sample_services):
        names = [s.name for s in ServiceCatalogService(db_session).suggest("de")]
        assert names == ["Formateo de laptop", "Instalación de antivirus", "Reparación de pantalla"]

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_text(self, db_session, sample_services, text):
        assert ServiceCatalogService(db_session).suggest(text) == []

    def test_limit(self, db_session):
        db_session.add_all([Service(name=f"Servicio {i:02d}", price=Decimal("10")) for i in range(15)])
        db_session.commit()
        assert len(ServiceCatalogService(db_session).suggest("servicio")) == MAX_SUGGESTIONS

    def test_line_id(self, db_session, sample_services):
        service = sample_services[0]
        assert service.line_id == f"S{service.id}"


class TestServiceEndpoints:
    """Tests para /api/servicios/sugerencias"""

    def test_suggestions(self, client, auth_headers, sample_services):
        response = client.get("/api/servicios/sugerencias?q=pantalla", headers=auth_headers)
        services = response.json()["services"]

        assert len(services) == 1
        assert services[0]["line_id"] == f"S{services[0]['id']}"
        assert services[0]["fixed_price"] is False

    def test_no_query(self, client, auth_headers, sample_services):
        response = client.get("/api/servicios/sugerencias", headers=auth_headers)
        assert response.json() == {"ok": True, "services": []}
