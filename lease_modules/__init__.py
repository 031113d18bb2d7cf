"""
Lease Modules.

Thin orchestration layers over the Lease Kernel and Engines.
Each module contains:
- Domain models (the nouns)
- Configuration schemas (defaults and validation settings)
- Mapping between the remote record and the editable draft
- A session facade exposing the named edits

Modules:
- Agreement: Commercial lease agreements, parking, agreement services,
  signing authority, custom fields

Actual calculation logic lives in the engines.
"""

from lease_modules import agreement

__all__ = [
    "agreement",
]
