# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Symbol relation providers for the call hierarchy engine."""

from cch.providers.fallback import FallbackRelationProvider
from cch.providers.index import IndexRelationProvider

__all__ = ["FallbackRelationProvider", "IndexRelationProvider"]
