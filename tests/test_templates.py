from urllib.parse import parse_qs, urlparse

import pytest

from pitchdeck.core.substitution import find_placeholders
from pitchdeck.core.template_generator import builtin_template, format_price, generate_proposal_content
from pitchdeck.schemas import ProposalData

PROPOSAL = {
    "clientName": "Acme Sp. z o.o.",
    "clientEmail": "hr@acme.com",
    "offerTitle": "Autumn hiring package",
    "validUntil": "2025-12-31",
    "packages": [
        {"name": "Starter", "price": 4500, "features": ["10 job postings"]},
        {"name": "Pro", "type": "Enterprise", "price": 12500, "regularPrice": 15000, "features": ["50 job postings"], "highlighted": True},
    ],
    "accountManager": {"name": "Jan Kowalski", "email": "jan@seller.com", "phone": "500 600 700"},
    "primaryColor": "#FF5A5F",
    "totalPrice": 17000,
    "totalRegularPrice": 19500,
    "savings": 2500,
}


@pytest.mark.parametrize("amount, expected", [
    (12500, "12 500 zł"),
    (1999.5, "1 999,5 zł"),
    (0, "0 zł"),
    (1234567, "1 234 567 zł"),
])
def test_format_price(amount, expected):
    assert format_price(amount) == expected


def test_format_price_other_currency():
    assert format_price(100, "eur") == "100 €"
    assert format_price(100, "CHF") == "100 CHF"


def test_generated_content_has_no_placeholders_left():
    content = generate_proposal_content(ProposalData.model_validate(PROPOSAL))

    assert [section.id for section in content.sections] == ["hero", "about", "packages", "account-manager", "summary"]
    assert content.metadata.title == "Autumn hiring package - Acme Sp. z o.o."
    assert content.sections[0].blocks[0].content.text == "Proposal for\nAcme Sp. z o.o."
    assert find_placeholders(content) == set()

    pro = content.sections[2].blocks[2].content
    assert pro.price == "12 500 zł net"
    assert pro.regular_price == "15 000 zł"
    assert pro.highlighted is True


def test_additional_services_only_when_ordered():
    data = ProposalData.model_validate({**PROPOSAL, "socialBoost": {"quantity": 3, "price": 900}})
    content = generate_proposal_content(data)
    services = next(section for section in content.sections if section.id == "additional-services")
    assert [block.id for block in services.blocks] == ["social-boost"]


def test_builtin_template_definition():
    template = builtin_template()
    assert template.slug == "sales-proposal"
    keys = {variable.key for variable in template.required_variables}
    assert {"clientName", "accountManager.email"} <= keys
    assert "clientName" in find_placeholders(template.default_content)


def test_template_endpoints_fall_back_to_builtin(client):
    response = client.get("/templates/")
    assert response.status_code == 200
    assert [item["slug"] for item in response.json()] == ["sales-proposal"]

    response = client.get("/templates/sales-proposal")
    assert response.status_code == 200
    assert response.json()["requiredVariables"][0]["key"] == "clientName"

    assert client.get("/templates/unknown").status_code == 404


def test_create_template(client):
    payload = {
        "name": "Renewal",
        "slug": "renewal",
        "structure": {"sections": [{"id": "hero", "blocks": [{"id": "t", "type": "text", "content": {"text": "Hi"}}]}]},
    }
    response = client.post("/templates/", json=payload)
    assert response.status_code == 201
    assert response.json()["slug"] == "renewal"

    assert [item["slug"] for item in client.get("/templates/").json()] == ["renewal"]
    assert client.post("/templates/", json=payload).status_code == 422
    assert client.post("/templates/", json={**payload, "slug": "Bad Slug"}).status_code == 422


def test_generate_presentation_endpoint(client, owner):
    response = client.post("/presentations/generate", json=PROPOSAL)
    assert response.status_code == 201
    data = response.json()

    view_url = urlparse(data["viewUrl"])
    slug = view_url.path.rsplit("/", 1)[-1]
    token = parse_qs(view_url.query)["token"][0]

    read = client.get(f"/versions/{slug}", params={"token": token})
    assert read.status_code == 200
    body = read.json()
    assert body["id"] == data["versionId"]
    assert body["recipientName"] == "Acme Sp. z o.o."
    assert body["presentation"]["id"] == data["presentationId"]
    assert body["presentation"]["title"] == "Autumn hiring package - Acme Sp. z o.o."
    assert body["presentation"]["settings"]["theme"]["primaryColor"] == "#FF5A5F"


def test_generate_requires_owner(client):
    assert client.post("/presentations/generate", json=PROPOSAL).status_code == 422
