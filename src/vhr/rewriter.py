"""Strip third-party branding from report HTML and apply the host brand.

The output is meant for a sandboxed frame with scripts disabled. Script
removal here is best effort: inline event-handler attributes are untouched.
"""
from __future__ import annotations

import html as html_lib
import logging
import re

from vhr.config import BrandConfig
from vhr.html_blocks import remove_balanced_blocks, remove_section_by_id, strip_scripts, unwrap_anchors

logger = logging.getLogger(__name__)

HEADER_ID = "brand-report-header"
FOOTER_ID = "brand-report-footer"
TOP_DISCLAIMER_ID = "brand-top-disclaimer"
STYLE_ID = "brand-report-overrides"

_BODY_OPEN = re.compile(r"<body(?:\s[^>]*)?>", re.IGNORECASE)
_BODY_CLOSE = re.compile(r"</body\s*>", re.IGNORECASE)
_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)

_VENDOR_DISCLAIMER = (
    r"This\s+{vendor}\s+Vehicle\s+History\s+Report\s+is\s+based\s+only\s+on\s+information\s+supplied\s+to\s+"
    r"{vendor}\s+and\s+available\s+as\s+of.*?to\s+make\s+a\s+better\s+decision\s+about\s+your\s+next\s+used\s+car\.?"
)
_BUYBACK_SENTENCE = r"This\s+vehicle\s+does\s+not\s+qualify\s+for\s+the\s+{vendor}\s+Buyback\s+Guarantee\.?"
_REPORTED_TO = r"reported\s+to\s+{vendor}\b"


def _vendor_patterns(template: str, brand: BrandConfig) -> list[re.Pattern[str]]:
    return [
        re.compile(template.format(vendor=re.escape(v)), re.IGNORECASE | re.DOTALL)
        for v in brand.vendor_names
    ]


def replace_vendor_copy(raw_html: str, brand: BrandConfig) -> str:
    out = raw_html
    for p in _vendor_patterns(_VENDOR_DISCLAIMER, brand):
        out = p.sub(lambda _: brand.disclaimer_text, out)
    for p in _vendor_patterns(_BUYBACK_SENTENCE, brand):
        out = p.sub("", out)
    for p in _vendor_patterns(_REPORTED_TO, brand):
        out = p.sub(lambda _: f"reported to {brand.brand_name}", out)
    return out


def replace_vendor_names(raw_html: str, brand: BrandConfig) -> str:
    """Whole-word, case-insensitive vendor name substitution."""
    out = raw_html
    for vendor in brand.vendor_names:
        out = re.sub(rf"\b{re.escape(vendor)}\b", lambda _: brand.brand_name, out, flags=re.IGNORECASE)
    return out


def replace_vendor_colors(raw_html: str, brand: BrandConfig) -> str:
    out = raw_html
    for vendor_hex, replacement in brand.color_map.items():
        out = re.sub(rf"{re.escape(vendor_hex)}(?![0-9a-fA-F])", replacement, out, flags=re.IGNORECASE)
    return out


def build_header(brand: BrandConfig) -> str:
    name = html_lib.escape(brand.brand_name)
    return (
        f'<header id="{HEADER_ID}" style="position: sticky; top: 0; z-index: 1000; display: flex; '
        f"align-items: center; justify-content: space-between; padding: 12px 20px; background: #FFFFFF; "
        f'border-bottom: 1px solid {brand.border_color};">'
        f'<img src="{html_lib.escape(brand.logo_url)}" alt="{name}" style="height: 32px;" />'
        f'<span style="font-size: 18px; font-weight: 600; color: {brand.text_color};">'
        f"{html_lib.escape(brand.header_title)}</span></header>"
        f'<div id="{TOP_DISCLAIMER_ID}" style="font-size: 13px; color: {brand.muted_color}; line-height: 1.5; '
        f"padding: 12px 16px; margin: 16px 0; background: #FCFCFB; border-left: 4px solid {brand.primary_color}; "
        f'border-radius: 0 4px 4px 0;">{html_lib.escape(brand.top_disclaimer)}</div>'
    )


def build_footer(brand: BrandConfig) -> str:
    return (
        f'<div id="{FOOTER_ID}" style="margin-top: 32px; padding: 16px 20px; font-size: 12px; '
        f"color: {brand.muted_color}; border-top: 1px solid {brand.border_color}; background: #FFFFFF;\">"
        f"<p>{html_lib.escape(brand.disclaimer_text)}</p>"
        f"<p>Report provided by {html_lib.escape(brand.brand_name)}.</p></div>"
    )


def build_style_block(brand: BrandConfig) -> str:
    logo = brand.logo_path_fragment
    brand_token = brand.brand_name.lower()
    rebranded_imgs = f'img[src*="{brand_token}" i]:not([src*="{logo}"]), img[alt*="{brand_token}" i]:not([src*="{logo}"])'
    css = f"""
  body {{
    background: {brand.background_color} !important;
    color: {brand.text_color} !important;
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif !important;
    line-height: 1.5 !important;
  }}
  h1, h2, h3, h4, h5, h6 {{ color: {brand.text_color} !important; font-weight: 600 !important; }}
  table, th, td {{ border-color: {brand.border_color} !important; }}
  th, [class*="section-header"], [class*="report-header"], [class*="header"]:not(#{HEADER_ID}), [id*="header"]:not(#{HEADER_ID}) {{
    background: {brand.primary_color} !important;
    color: #ffffff !important;
    border-color: {brand.primary_dark_color} !important;
  }}
  {rebranded_imgs},
  img[src*="logo"]:not([src*="{logo}"]), [class*="logo"] img:not([src*="{logo}"]),
  [class*="-icon"] img:not([src*="{logo}"]), [class*="branding"], [id*="branding"],
  .powered-by, [class*="powered-by"], [class*="report-provided"] {{
    display: none !important;
  }}
  footer, [class*="footer"]:not(#{FOOTER_ID}), [class*="follow-us"], [class*="follow_us"],
  [class*="signature"], [class*="social-links"], [id*="glossary"], [class*="glossary"] {{
    display: none !important;
  }}
  [onclick], [role="button"], [role="link"], [class*="link"], [class*="clickable"], [class*="expand"], button {{
    cursor: default !important;
    text-decoration: none !important;
  }}
"""
    return f'<style id="{STYLE_ID}">{css}</style>'


def _insert_after_body_open(html: str, fragment: str) -> str | None:
    m = _BODY_OPEN.search(html)
    if m is None:
        return None
    return html[: m.end()] + fragment + html[m.end():]


def inject_header(html: str, brand: BrandConfig) -> str:
    if f'id="{HEADER_ID}"' in html:
        return html
    header = build_header(brand)
    out = _insert_after_body_open(html, header)
    return out if out is not None else header + html


def inject_footer(html: str, brand: BrandConfig) -> str:
    if f'id="{FOOTER_ID}"' in html:
        return html
    footer = build_footer(brand)
    closes = list(_BODY_CLOSE.finditer(html))
    if not closes:
        return html + footer
    last = closes[-1]
    return html[: last.start()] + footer + html[last.start():]


def inject_styles(html: str, brand: BrandConfig) -> str:
    if f'id="{STYLE_ID}"' in html:
        return html
    style = build_style_block(brand)
    m = _HEAD_CLOSE.search(html)
    if m is not None:
        return html[: m.start()] + style + html[m.start():]
    out = _insert_after_body_open(html, style)
    if out is not None:
        return out
    logger.debug("report html has neither </head> nor <body>; prepending styles")
    return style + html


def rewrite(raw_html: str, brand: BrandConfig | None = None) -> str:
    """Return the report with scripts removed and vendor branding replaced."""
    if not raw_html or not raw_html.strip():
        return raw_html
    brand = brand or BrandConfig()

    out = strip_scripts(raw_html)
    for fragment in brand.removed_block_classes:
        out = remove_balanced_blocks(out, fragment)
    for section_id in brand.removed_section_ids:
        out = remove_section_by_id(out, section_id)
    out = unwrap_anchors(out)
    out = replace_vendor_copy(out, brand)
    out = replace_vendor_names(out, brand)
    out = replace_vendor_colors(out, brand)
    out = inject_header(out, brand)
    out = inject_footer(out, brand)
    return inject_styles(out, brand)
