"""Template Generator - builds sales-proposal content trees.

``generate_proposal_content`` lays out the sections for a proposal and then
resolves the ``{{placeholders}}`` in it once against the proposal data.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..schemas import (
    ContentTree,
    PresentationSettings,
    ProposalData,
    TemplateDefinition,
    TemplateVariable,
)
from .config import settings
from .substitution import find_placeholders, substitute

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {"PLN": "zł", "EUR": "€", "USD": "$", "GBP": "£"}

DEFAULT_PRIMARY_COLOR = "#667eea"
DEFAULT_SECONDARY_COLOR = "#764ba2"


def format_price(amount: float, currency: str = "PLN") -> str:
    """Format an amount with space-grouped thousands, e.g. ``12 500 zł``."""
    number = f"{amount:,.2f}".rstrip("0").rstrip(".")
    number = number.replace(",", " ").replace(".", ",")
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())
    return f"{number} {symbol}"


def _gradient(primary: str, secondary: str) -> Dict[str, str]:
    return {"type": "gradient", "value": f"linear-gradient(135deg, {primary} 0%, {secondary} 100%)"}


def _hero_section(data: ProposalData) -> Dict[str, Any]:
    primary = data.primary_color or DEFAULT_PRIMARY_COLOR
    secondary = data.secondary_color or DEFAULT_SECONDARY_COLOR
    blocks: List[Dict[str, Any]] = [
        {
            "id": "hero-title",
            "type": "text",
            "content": {"text": "Proposal for\n{{clientName}}", "tag": "h1"},
            "style": {"fontSize": "48px", "fontWeight": "700", "color": "#ffffff", "textAlign": "center"},
            "animation": {"type": "fade", "duration": 1, "delay": 0.2},
        },
    ]
    if data.logo:
        blocks.append({
            "id": "hero-logo",
            "type": "image",
            "content": {"url": "{{logo}}", "alt": "{{clientName}}"},
            "style": {"maxWidth": "200px", "margin": "0 auto"},
            "animation": {"type": "scale", "duration": 0.8, "delay": 0.5},
        })
    blocks.append({
        "id": "hero-offer",
        "type": "text",
        "content": {"text": "{{offerTitle}}", "tag": "h2"},
        "style": {"fontSize": "36px", "fontWeight": "600", "color": "#FFD700", "textAlign": "center"},
        "animation": {"type": "slide", "duration": 1, "delay": 1},
    })
    if data.custom_message:
        blocks.append({
            "id": "hero-message",
            "type": "text",
            "content": {"text": "{{customMessage}}", "tag": "p"},
            "style": {"fontSize": "20px", "color": "#ffffff", "textAlign": "center"},
            "animation": {"type": "fade", "duration": 1, "delay": 1.2},
        })
    return {"id": "hero", "layout": "hero", "background": _gradient(primary, secondary), "blocks": blocks}


def _about_section() -> Dict[str, Any]:
    return {
        "id": "about",
        "layout": "two-column",
        "blocks": [
            {
                "id": "about-title",
                "type": "text",
                "content": {"text": "Why work with us", "tag": "h2"},
                "style": {"fontSize": "32px", "fontWeight": "700"},
            },
            {
                "id": "about-description",
                "type": "text",
                "content": {
                    "text": "This offer was prepared for {{clientName}} by {{accountManager.name}}.",
                    "tag": "p",
                },
                "style": {"fontSize": "24px", "lineHeight": "1.6"},
            },
        ],
    }


def _packages_section(data: ProposalData) -> Dict[str, Any]:
    primary = data.primary_color or DEFAULT_PRIMARY_COLOR
    blocks: List[Dict[str, Any]] = [
        {
            "id": "packages-title",
            "type": "text",
            "content": {"text": "Available packages", "tag": "h2"},
            "style": {"fontSize": "36px", "fontWeight": "700", "textAlign": "center"},
        }
    ]
    for index, package in enumerate(data.packages):
        content: Dict[str, Any] = {
            "title": package.name,
            "subtitle": package.type,
            "description": "\n".join(package.features),
            "price": f"{format_price(package.price, data.currency)} net",
            "highlighted": package.highlighted,
            "features": package.features,
        }
        if package.regular_price:
            content["regularPrice"] = format_price(package.regular_price, data.currency)
        blocks.append({
            "id": f"package-{index}",
            "type": "cta",
            "content": content,
            "style": {
                "background": primary if package.highlighted else "#ffffff",
                "color": "#ffffff" if package.highlighted else "#000000",
                "border": "none" if package.highlighted else "2px solid #e5e7eb",
                "borderRadius": "16px",
                "padding": "30px",
            },
            "animation": {"type": "slide", "duration": 0.8, "delay": index * 0.2},
        })
    return {"id": "packages", "title": "Packages", "layout": "single", "blocks": blocks}


def _additional_services_section(data: ProposalData) -> Optional[Dict[str, Any]]:
    blocks: List[Dict[str, Any]] = []
    if data.social_boost:
        blocks.append({
            "id": "social-boost",
            "type": "cta",
            "content": {
                "title": "Social Boost",
                "description": "A dedicated ad campaign that puts your listings in front of more people",
                "price": f"{format_price(data.social_boost.price, data.currency)} net",
                "features": [
                    f"{data.social_boost.quantity} x Social Boost",
                    "Targeted advertising campaign",
                    "More visibility for your listings",
                ],
            },
        })
    if data.company_profile:
        content: Dict[str, Any] = {
            "title": "Employer Profile",
            "subtitle": data.company_profile.type,
            "description": "Strengthen your recruitment with an employer profile",
            "price": f"{format_price(data.company_profile.price, data.currency)} net",
        }
        if data.company_profile.regular_price:
            content["regularPrice"] = format_price(data.company_profile.regular_price, data.currency)
        blocks.append({"id": "company-profile", "type": "cta", "content": content})

    if not blocks:
        return None
    return {"id": "additional-services", "title": "Additional services", "layout": "two-column", "blocks": blocks}


def _account_manager_section(data: ProposalData) -> Dict[str, Any]:
    photo = data.account_manager.photo or (
        f"https://ui-avatars.com/api/?name={quote(data.account_manager.name)}&size=300"
    )
    return {
        "id": "account-manager",
        "layout": "split",
        "background": {"type": "color", "value": "#f9fafb"},
        "blocks": [
            {
                "id": "manager-image",
                "type": "image",
                "content": {"url": photo, "alt": "{{accountManager.name}}"},
                "style": {"borderRadius": "50%", "maxWidth": "200px", "margin": "0 auto"},
            },
            {
                "id": "manager-info",
                "type": "text",
                "content": {
                    "text": (
                        "<h3>Questions? Get in touch!</h3>"
                        "<p><strong>{{accountManager.name}}</strong></p>"
                        "<p>Key Account Manager</p>"
                        '<p><a href="mailto:{{accountManager.email}}">{{accountManager.email}}</a></p>'
                        '<p><a href="tel:{{accountManager.phone}}">{{accountManager.phone}}</a></p>'
                    ),
                    "tag": "div",
                },
            },
            {
                "id": "manager-cta",
                "type": "cta",
                "content": {
                    "title": "Book a meeting",
                    "buttonText": "Book a meeting",
                    "buttonLink": "mailto:{{accountManager.email}}",
                },
                "style": {"textAlign": "center"},
            },
        ],
    }


def _summary_section(data: ProposalData) -> Dict[str, Any]:
    primary = data.primary_color or DEFAULT_PRIMARY_COLOR
    secondary = data.secondary_color or DEFAULT_SECONDARY_COLOR
    stats: List[Dict[str, Any]] = []
    if data.total_regular_price:
        stats.append({"value": format_price(data.total_regular_price, data.currency), "label": "List price (net)"})
    stats.append({
        "value": format_price(data.total_price, data.currency),
        "label": "Your price (net)",
        "highlight": True,
    })
    if data.savings:
        stats.append({"value": format_price(data.savings, data.currency), "label": "You save"})

    summary_cta: Dict[str, Any] = {
        "title": "Interested?",
        "description": "Get in touch with us today!",
        "buttonText": "Book a meeting",
        "buttonLink": "mailto:{{accountManager.email}}",
    }
    if data.valid_until:
        summary_cta["subtitle"] = "Offer valid until {{validUntil}}"

    return {
        "id": "summary",
        "layout": "single",
        "background": _gradient(primary, secondary),
        "blocks": [
            {
                "id": "summary-title",
                "type": "text",
                "content": {"text": "Offer summary", "tag": "h2"},
                "style": {"fontSize": "36px", "fontWeight": "700", "color": "#ffffff", "textAlign": "center"},
            },
            {"id": "summary-total", "type": "stats", "content": {"stats": stats}},
            {"id": "summary-cta", "type": "cta", "content": summary_cta, "style": {"textAlign": "center"}},
        ],
    }


def generate_proposal_content(data: ProposalData) -> ContentTree:
    """Build the proposal content tree and substitute the proposal data into it."""
    now = datetime.now(timezone.utc).isoformat()
    sections = [_hero_section(data), _about_section(), _packages_section(data)]
    additional = _additional_services_section(data)
    if additional:
        sections.append(additional)
    sections.extend([_account_manager_section(data), _summary_section(data)])

    tree = ContentTree.model_validate({
        "metadata": {
            "title": "{{offerTitle}} - {{clientName}}",
            "description": "Business proposal for {{clientName}}",
            "author": "{{accountManager.name}}",
            "createdAt": now,
            "updatedAt": now,
        },
        "sections": sections,
    })

    content = substitute(tree, data.as_variables())
    unresolved = find_placeholders(content)
    if unresolved:
        logger.warning(f"Proposal for {data.client_name} left placeholders unresolved: {sorted(unresolved)}")
    return content


def generate_proposal_settings(data: ProposalData) -> PresentationSettings:
    """Theme taken from the proposal's branding, analytics on."""
    return PresentationSettings.model_validate({
        "theme": {
            "primaryColor": data.primary_color or DEFAULT_PRIMARY_COLOR,
            "secondaryColor": data.secondary_color or DEFAULT_SECONDARY_COLOR,
            "fontFamily": "Inter, sans-serif",
            "logoUrl": data.logo,
        },
        "tracking": {"enableAnalytics": True},
    })


def builtin_template() -> TemplateDefinition:
    """The sales-proposal template served when no stored template exists."""
    now = datetime.now(timezone.utc)
    slug = settings.DEFAULT_TEMPLATE_SLUG
    return TemplateDefinition(
        id=slug,
        name="Sales Proposal",
        slug=slug,
        description="Business proposal template for sales presentations",
        thumbnail=f"/templates/{slug}-thumb.png",
        required_variables=[
            TemplateVariable(key="clientName", type="text", value="", label="Client Company Name"),
            TemplateVariable(key="clientEmail", type="text", value="", label="Client Email"),
            TemplateVariable(key="offerTitle", type="text", value="Special Offer", label="Offer Title"),
            TemplateVariable(key="offerDate", type="date", value=now.date().isoformat(), label="Offer Date"),
            TemplateVariable(key="totalPrice", type="number", value=0, label="Total Price"),
            TemplateVariable(key="accountManager.name", type="text", value="", label="Account Manager Name"),
            TemplateVariable(key="accountManager.email", type="text", value="", label="Account Manager Email"),
            TemplateVariable(key="accountManager.phone", type="text", value="", label="Account Manager Phone"),
        ],
        default_content=ContentTree.model_validate({
            "metadata": {
                "title": "Sales Proposal",
                "description": "Business proposal template",
                "author": "Sales Team",
                "createdAt": now.isoformat(),
                "updatedAt": now.isoformat(),
            },
            "sections": [
                {
                    "id": "hero",
                    "layout": "hero",
                    "background": _gradient(DEFAULT_PRIMARY_COLOR, DEFAULT_SECONDARY_COLOR),
                    "blocks": [
                        {
                            "id": "hero-title",
                            "type": "text",
                            "content": {"text": "Proposal for\n{{clientName}}", "tag": "h1"},
                            "style": {"fontSize": "48px", "fontWeight": "700", "color": "#ffffff", "textAlign": "center"},
                        },
                        {
                            "id": "hero-offer",
                            "type": "text",
                            "content": {"text": "{{offerTitle}}", "tag": "h2"},
                        },
                    ],
                }
            ],
        }),
        default_settings=PresentationSettings.model_validate({
            "theme": {
                "primaryColor": "#FF5A5F",
                "secondaryColor": "#6366F1",
                "fontFamily": "Inter, sans-serif",
            },
            "tracking": {"enableAnalytics": True},
        }),
    )
