"""Purchasable package catalogue.

Credit packages add a fixed number of verification credits and record the
package id as the account's plan. The unlimited package grants one year of
unlimited submissions instead of credits.

Catalogue (price in the configured currency):
1. STANDARD: 1 credit, 120
2. CORPORATE_PLUS: 5 credits, 600
3. CORPORATE_PRO: 10 credits, 1200
4. ENTERPRISE: unlimited for one year, 2500
"""

from typing import Dict, Optional

from verifivue.data_management.schemas.account_schema import PackageDef, UNLIMITED

DEFAULT_PACKAGES: Dict[str, PackageDef] = {
    "STANDARD": PackageDef(
        id="STANDARD",
        name="Standard",
        price=120,
        credits=1,
        description="Perfect for one-off verification needs.",
    ),
    "CORPORATE_PLUS": PackageDef(
        id="CORPORATE_PLUS",
        name="Corporate Plus",
        price=600,
        credits=5,
        description="For small businesses with occasional hiring.",
    ),
    "CORPORATE_PRO": PackageDef(
        id="CORPORATE_PRO",
        name="Corporate Pro",
        price=1200,
        credits=10,
        description="Ideal for growing teams and regular checks.",
    ),
    "ENTERPRISE": PackageDef(
        id="ENTERPRISE",
        name="Enterprise",
        price=2500,
        credits=UNLIMITED,
        description="Unlimited access for high-volume institutions.",
    ),
}


def get_package(package_id: str) -> Optional[PackageDef]:
    """Look up a catalogue package by id (case-insensitive)."""
    return DEFAULT_PACKAGES.get(package_id.upper())
