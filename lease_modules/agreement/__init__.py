"""
Lease Agreement Module (``lease_modules.agreement``).

Responsibility
--------------
Editing of one commercial lease agreement: deriving rent and tax figures
from area and rate, tracking parking and agreement-service rows across an
edit session, validating the signing authority and custom fields, and
composing the single ``{"lease": ...}`` record sent to the remote store.

Architecture position
---------------------
**Modules layer** -- frozen models, pure draft operations, a wire builder
and mapper, and a session facade.  All arithmetic is delegated to
``lease_engines``.

Invariants enforced
-------------------
* CGST/SGST and IGST are never both non-zero after an edit.
* ``basic_rent``, ``gst_amount`` and ``tds_amount`` always match the
  draft's inputs.
* Identities of removed persisted rows are sent as destroy markers exactly
  once per update.
* Validation precedes any transport call.

Failure modes
-------------
* ``LeaseValidationError`` -- invalid signing authority or missing
  required custom field; nothing sent.
* ``LeaseSubmissionError`` -- transport failure; draft kept.
"""

from lease_modules.agreement.builder import AggregateBuilder, data_url_encoder
from lease_modules.agreement.config import LeaseConfig
from lease_modules.agreement.mapper import LeaseMapper
from lease_modules.agreement.models import (
    AgreementDocument,
    AgreementService,
    BuildMode,
    CustomFieldDef,
    CustomFieldType,
    ExistingDocument,
    LeaseDraft,
    NoticeTerms,
    ParkingAllocation,
    ParkingBilling,
    SigningAuthority,
    VehicleClass,
)
from lease_modules.agreement.service import LeaseEditSession, LeaseTransport
from lease_modules.agreement.tracker import SubCollectionTracker

__all__ = [
    "AggregateBuilder",
    "AgreementDocument",
    "AgreementService",
    "BuildMode",
    "CustomFieldDef",
    "CustomFieldType",
    "ExistingDocument",
    "LeaseConfig",
    "LeaseDraft",
    "LeaseEditSession",
    "LeaseMapper",
    "LeaseTransport",
    "NoticeTerms",
    "ParkingAllocation",
    "ParkingBilling",
    "SigningAuthority",
    "SubCollectionTracker",
    "VehicleClass",
    "data_url_encoder",
]
