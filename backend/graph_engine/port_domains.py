"""
Built-in port type rows, grouped by creative domain.

Each row maps a target port type to the extra source types it accepts. The
registry adds the type itself and ``any`` to every row, so a row only lists
the cross-type links. New domains add a table here (or register their own
at startup) without touching the lookup code.
"""

from typing import Dict, Tuple

DomainTable = Dict[str, Tuple[str, ...]]


CORE_TYPES: DomainTable = {
    'image': (),
    'video': (),
    'audio': (),
    'text': (),
    'mesh3d': (),
}

STYLE_TYPES: DomainTable = {
    'style': ('image',),
    'character': ('text', 'model'),
}

FASHION_TYPES: DomainTable = {
    'garment': ('image',),
    'fabric': ('image',),
    'pattern': ('image',),
    'model': ('image', 'character'),
    'outfit': ('image',),
    'collection': (),
    'techPack': ('text',),
    'lookbook': ('image',),
}

STORY_TYPES: DomainTable = {
    'story': ('text',),
    'scene': ('text',),
    'plotPoint': ('scene', 'text'),
    'location': ('text',),
    'dialogue': ('text',),
    'treatment': ('text',),
    'outline': ('text',),
    'lore': ('text',),
    'timeline': ('text',),
}

INTERIOR_TYPES: DomainTable = {
    'room': ('image',),
    'floorPlan': ('image',),
    'material': ('image',),
    'furniture': ('image',),
    'designStyle': ('text',),
    'roomLayout': ('floorPlan',),
}

MOODBOARD_TYPES: DomainTable = {
    'moodboard': ('image',),
    'colorPalette': (),
    'brandKit': (),
    'typography': ('text',),
    'texture': ('image',),
    'aesthetic': ('text',),
}

SOCIAL_TYPES: DomainTable = {
    'post': ('image',),
    'carousel': ('image',),
    'caption': ('text',),
    'template': ('image',),
    'platform': (),
}


DOMAIN_TABLES: Dict[str, DomainTable] = {
    'core': CORE_TYPES,
    'style': STYLE_TYPES,
    'fashion': FASHION_TYPES,
    'story': STORY_TYPES,
    'interior': INTERIOR_TYPES,
    'moodboard': MOODBOARD_TYPES,
    'social': SOCIAL_TYPES,
}
