from __future__ import annotations

from dataclasses import dataclass

from clearance.tracking import TRACKING_STAGES

# Checked in order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
  ("DOCUMENTATION", ("document", "pre-arrival", "pre arrival", "bl", "invoice", "packing")),
  ("CUSTOMS_DECLARATION", ("declaration", "customs", "tariff", "classification")),
  ("PAYMENT", ("payment", "duty", "fee", "tax", "vat")),
  ("INSPECTION", ("inspection", "quality", "standards", "ssmo", "quarantine")),
  ("RELEASE", ("release", "clearance", "gate")),
  ("DELIVERY", ("delivery", "transport", "loading", "transit", "truck")),
)

# Checked in order; the first matching keyword decides the tracking stage.
TRACKING_STAGE_KEYWORDS: tuple[tuple[str, str], ...] = (
  ("pre-arrival", "PRE_ARRIVAL_DOCS"),
  ("documentation", "PRE_ARRIVAL_DOCS"),
  ("arrival", "VESSEL_ARRIVAL"),
  ("vessel", "VESSEL_ARRIVAL"),
  ("declaration", "CUSTOMS_DECLARATION"),
  ("customs", "CUSTOMS_DECLARATION"),
  ("payment", "CUSTOMS_PAYMENT"),
  ("duty", "CUSTOMS_PAYMENT"),
  ("inspection", "INSPECTION"),
  ("port", "PORT_FEES"),
  ("quality", "QUALITY_STANDARDS"),
  ("release", "RELEASE"),
  ("loading", "LOADING"),
  ("transit", "IN_TRANSIT"),
  ("transport", "IN_TRANSIT"),
  ("delivery", "DELIVERED"),
  ("delivered", "DELIVERED"),
)

STAGE_TO_CATEGORY: dict[str, str] = {
  "PRE_ARRIVAL_DOCS": "DOCUMENTATION",
  "VESSEL_ARRIVAL": "DOCUMENTATION",
  "CUSTOMS_DECLARATION": "CUSTOMS_DECLARATION",
  "CUSTOMS_PAYMENT": "PAYMENT",
  "INSPECTION": "INSPECTION",
  "PORT_FEES": "PAYMENT",
  "QUALITY_STANDARDS": "INSPECTION",
  "RELEASE": "RELEASE",
  "LOADING": "DELIVERY",
  "IN_TRANSIT": "DELIVERY",
  "DELIVERED": "DELIVERY",
}


@dataclass(frozen=True)
class TaskTemplate:
  title: str
  description: str
  estimated_hours: int


@dataclass(frozen=True)
class DefaultTask:
  title: str
  category: str
  stage: str


def map_stage_to_category(stage_name: str) -> str:
  lower = (stage_name or "").lower()
  for category, keywords in CATEGORY_KEYWORDS:
    if any(k in lower for k in keywords):
      return category
  return "GENERAL"


def map_stage_to_tracking_stage(stage_name: str) -> str | None:
  lower = (stage_name or "").lower()
  for keyword, stage in TRACKING_STAGE_KEYWORDS:
    if keyword in lower:
      return stage
  return None


def category_for_stage(stage: str) -> str:
  return STAGE_TO_CATEGORY.get(stage, "GENERAL")


def stages_for_category(category: str) -> list[str]:
  return [s for s in TRACKING_STAGES if STAGE_TO_CATEGORY.get(s) == category]


# Used when a project carries no activities at all.
DEFAULT_TASKS: tuple[DefaultTask, ...] = (
  DefaultTask("Collect Documents", "DOCUMENTATION", "PRE_ARRIVAL_DOCS"),
  DefaultTask("Verify Commercial Invoice", "DOCUMENTATION", "PRE_ARRIVAL_DOCS"),
  DefaultTask("Prepare Customs Declaration", "CUSTOMS_DECLARATION", "CUSTOMS_DECLARATION"),
  DefaultTask("Submit Declaration", "CUSTOMS_DECLARATION", "CUSTOMS_DECLARATION"),
  DefaultTask("Calculate Duties", "PAYMENT", "CUSTOMS_PAYMENT"),
  DefaultTask("Collect Payment from Client", "PAYMENT", "CUSTOMS_PAYMENT"),
  DefaultTask("Schedule Inspection", "INSPECTION", "INSPECTION"),
  DefaultTask("Attend Inspection", "INSPECTION", "INSPECTION"),
  DefaultTask("Pay Port Fees", "RELEASE", "PORT_FEES"),
  DefaultTask("Obtain Release Order", "RELEASE", "RELEASE"),
  DefaultTask("Arrange Transport", "DELIVERY", "LOADING"),
  DefaultTask("Confirm Delivery", "DELIVERY", "DELIVERED"),
)


CLEARANCE_STAGE_TASKS: dict[str, tuple[TaskTemplate, ...]] = {
  "PRE_ARRIVAL_DOCS": (
    TaskTemplate("Collect Commercial Invoice", "Obtain and verify commercial invoice from client", 2),
    TaskTemplate("Verify Bill of Lading", "Check B/L details match commercial invoice", 1),
    TaskTemplate("Obtain Packing List", "Collect packing list from client", 1),
    TaskTemplate("Verify Certificate of Origin", "Check COO validity and details", 1),
  ),
  "VESSEL_ARRIVAL": (
    TaskTemplate("Track Vessel Arrival", "Monitor vessel ETA and actual arrival", 1),
    TaskTemplate("Confirm Container Discharge", "Verify container has been discharged from vessel", 2),
  ),
  "CUSTOMS_DECLARATION": (
    TaskTemplate("Prepare Customs Declaration", "Complete customs declaration form with all details", 3),
    TaskTemplate("Submit Declaration to Customs", "Submit declaration through customs system", 1),
    TaskTemplate("Await Declaration Approval", "Monitor declaration status for approval", 4),
  ),
  "CUSTOMS_PAYMENT": (
    TaskTemplate("Calculate Import Duties", "Calculate total duties and taxes payable", 1),
    TaskTemplate("Request Payment from Client", "Send payment request with duty breakdown", 1),
    TaskTemplate("Process Customs Payment", "Pay duties at customs treasury", 2),
  ),
  "INSPECTION": (
    TaskTemplate("Schedule Customs Inspection", "Coordinate inspection appointment", 1),
    TaskTemplate("Attend Physical Inspection", "Be present during cargo inspection", 4),
    TaskTemplate("Obtain Inspection Report", "Collect inspection report from customs", 1),
  ),
  "PORT_FEES": (
    TaskTemplate("Calculate Port Charges", "Get port storage and handling fees", 1),
    TaskTemplate("Pay Port Fees", "Process payment at port authority", 2),
  ),
  "QUALITY_STANDARDS": (
    TaskTemplate("Submit SSMO Application", "Apply for standards conformity certificate", 2),
    TaskTemplate("Obtain SSMO Certificate", "Collect quality conformity certificate", 4),
  ),
  "RELEASE": (
    TaskTemplate("Request Release Order", "Apply for cargo release authorization", 1),
    TaskTemplate("Obtain Release Order", "Collect release order from customs", 2),
    TaskTemplate("Process Gate Pass", "Arrange gate pass for cargo exit", 1),
  ),
  "LOADING": (
    TaskTemplate("Arrange Transport", "Book trucks for cargo transport", 2),
    TaskTemplate("Supervise Loading", "Oversee cargo loading onto trucks", 3),
  ),
  "IN_TRANSIT": (
    TaskTemplate("Track Cargo in Transit", "Monitor cargo movement to destination", 1),
    TaskTemplate("Coordinate with Driver", "Stay in contact with transport driver", 1),
  ),
  "DELIVERED": (
    TaskTemplate("Confirm Delivery", "Get delivery confirmation from client", 1),
    TaskTemplate("Collect Delivery Receipt", "Obtain signed delivery receipt", 1),
    TaskTemplate("Close File", "Complete final documentation and close job file", 2),
  ),
}


def tasks_for_stage(stage: str) -> list[TaskTemplate]:
  return list(CLEARANCE_STAGE_TASKS.get(stage, ()))
