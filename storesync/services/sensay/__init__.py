"""Sensay services package."""

from storesync.services.sensay.client import SensayClient

from storesync.services.sensay.users import (
    SensayUserManager,
    generate_user_id,
    store_tag,
)

from storesync.services.sensay.replicas import (
    ReplicaService,
    extract_product_count,
)

from storesync.services.sensay.knowledge import (
    build_generated_facts,
    format_enhanced_product_data,
    format_product_section,
)

__all__ = [
    # Client
    'SensayClient',
    # Users
    'SensayUserManager',
    'generate_user_id',
    'store_tag',
    # Replicas
    'ReplicaService',
    'extract_product_count',
    # Knowledge base content
    'build_generated_facts',
    'format_enhanced_product_data',
    'format_product_section',
]
