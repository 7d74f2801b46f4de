"""
CONFIA - Source Package

Financial management for small businesses: customer and supplier
registries, income/expense tracking, a dashboard and an AI assistant.

DESIGN PRINCIPLES:
1. One record store interface, two interchangeable backends
2. Remote when signed in, local when in demo mode, nothing otherwise
3. Re-fetch everything after every write
4. Statistics are derived, never stored
5. AI failures degrade to fallbacks, never to crashes
"""

__version__ = "1.0.0"
__author__ = "CONFIA Team"
