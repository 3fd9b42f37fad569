from __future__ import annotations

from clearance.schemas import ActivityIn, ProjectCreateIn
from clearance.services.activities import Activity, group_activities, normalize_activities, normalize_activity


def test_legacy_keys_are_normalized() -> None:
  a = normalize_activity({"system": "IMPORT_AIR", "category": "Payment", "subcategory": "Duty", "activity": " Pay duty "})
  assert a == Activity(shipment_type="IMPORT_AIR", stage="Payment", substage="Duty", task="Pay duty")


def test_current_keys_win_over_legacy() -> None:
  a = normalize_activity({"stage": "Release", "category": "Payment", "task": "Gate pass"})
  assert a.stage == "Release"
  assert a.task == "Gate pass"
  assert a.shipment_type == ""


def test_non_mapping_entries_are_skipped() -> None:
  assert normalize_activities(None) == []
  assert normalize_activities(["junk", 3, {"stage": "Documentation"}]) == [Activity(stage="Documentation")]


def test_grouping_merges_tasks_in_order() -> None:
  acts = normalize_activities(
    [
      {"shipmentType": "IMPORT_SEA_FCL", "stage": "Documentation", "substage": "Documentation", "task": "Bill of Lading Collection"},
      {"shipmentType": "IMPORT_SEA_FCL", "stage": "Payment", "substage": "", "task": "Duty Payment"},
      {"shipmentType": "IMPORT_SEA_FCL", "stage": "Documentation", "substage": "Documentation", "task": "Certificate of Origin"},
      {"shipmentType": "IMPORT_SEA_FCL", "stage": "Payment", "substage": "", "task": ""},
    ]
  )
  groups = group_activities(acts)
  assert [g.title for g in groups] == ["Documentation", "Payment"]
  assert groups[0].tasks == ["Bill of Lading Collection", "Certificate of Origin"]
  # Empty task names are dropped; substage falls back to the stage for the title.
  assert groups[1].tasks == ["Duty Payment"]

  linked = groups[0].linked_activity("p-1")
  assert linked == {
    "projectId": "p-1",
    "shipmentType": "IMPORT_SEA_FCL",
    "stage": "Documentation",
    "substage": "Documentation",
    "task": "Bill of Lading Collection, Certificate of Origin",
  }


def test_project_payload_normalizes_activities() -> None:
  p = ProjectCreateIn(customer="Acme", activities=[{"system": "EXPORT_SEA", "category": "Release", "activity": "Gate out"}])
  assert p.activities == [ActivityIn(shipmentType="EXPORT_SEA", stage="Release", substage="", task="Gate out")]
  assert p.skipCascade is False
