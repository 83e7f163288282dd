"""
Prompts for video analysis.

One system prompt and one user template: the model receives the video's
title, description, tags and the products already parsed from the
description, and returns blog/SEO copy plus the full product list as JSON.
"""

import json
from typing import Iterable

from content_engine.models.schemas import ExtractedProduct, ProductType


# =============================================================================
# System Prompt
# =============================================================================

VIDEO_ANALYST_SYSTEM = """You are an editor for a creator's shoppable blog. You turn YouTube and TikTok videos into short blog posts and identify every product the creator mentions.

<rules>
1. Respond with ONLY valid JSON - no markdown, no explanation, no code fences
2. Never invent URLs; use null when a product has no link in the description
3. Keep brand names exactly as the creator writes them
4. Products already found in the description must be preserved as given
</rules>"""


# =============================================================================
# User Prompt
# =============================================================================

VIDEO_CATEGORIES = ("makeup", "skincare", "fashion", "lifestyle", "travel")

VIDEO_ANALYSIS_USER = """You are analyzing a video to create a blog post and extract ALL products mentioned.

<video>
TITLE: {title}

DESCRIPTION:
{description}

TAGS: {tags}
</video>

<products_already_found>
{known_products}
</products_already_found>

<task>
1. Extract ALL products mentioned, from the description links AND any mentioned in text
2. Generate a blog post about this video
3. Suggest SEO metadata
</task>

<product_rules>
- Include ALL products from products_already_found
- Add any additional products mentioned in the title, description text, or tags
- For each product include: brand, name, type ({product_types}) and a retail search query
- If there's a URL in the description for a product, include it as "originalUrl"
</product_rules>

<output_format>
{{
  "category": "{categories}",
  "products": [
    {{
      "brand": "Brand Name",
      "name": "Product Name",
      "type": "makeup",
      "searchQuery": "brand name product name",
      "originalUrl": "url from description if available, otherwise null"
    }}
  ],
  "blogTitle": "Engaging blog title (50-60 chars)",
  "blogExcerpt": "Brief compelling summary (150-160 chars)",
  "blogContent": "Full blog post (200-400 words) with [PRODUCT_LINK:Product Name] placeholders where products should be linked",
  "seoTitle": "SEO optimized title (50-60 chars)",
  "seoDescription": "Meta description for search engines (150-160 chars)",
  "suggestedTags": ["tag1", "tag2", "tag3"]
}}
</output_format>"""


def format_known_products(products: Iterable[ExtractedProduct]) -> str:
    """Description products as the JSON the model is asked to preserve."""
    payload = [
        {
            "brand": p.brand,
            "name": p.name,
            "type": p.type.value,
            "searchQuery": p.search_query,
            "originalUrl": p.original_url,
        }
        for p in products
    ]
    if not payload:
        return "None found automatically"
    return json.dumps(payload, indent=2, ensure_ascii=False)


def format_video_analysis_prompt(
    title: str,
    description: str,
    tags: list[str],
    products: Iterable[ExtractedProduct],
) -> str:
    return VIDEO_ANALYSIS_USER.format(
        title=title or "Untitled",
        description=description or "No description",
        tags=", ".join(tags) if tags else "No tags",
        known_products=format_known_products(products),
        product_types="/".join(t.value for t in ProductType),
        categories="|".join(VIDEO_CATEGORIES),
    )
