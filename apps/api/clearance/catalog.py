"""Clearance-stage catalog: shipment type -> clearance stage -> task names."""
from __future__ import annotations

from clearance.services.activities import Activity

SHIPMENT_TYPE_LABELS: dict[str, str] = {
  "IMPORT_SEA_FCL": "Import Sea (FCL)",
  "IMPORT_SEA_LCL": "Import Sea (LCL)",
  "IMPORT_AIR": "Import Air",
  "IMPORT_LAND": "Import Land",
  "EXPORT_SEA": "Export Sea",
  "EXPORT_AIR": "Export Air",
  "EXPORT_LAND": "Export Land",
  "TRANSIT": "Transit",
  "RE_EXPORT": "Re-Export",
}

CLEARANCE_STAGES: dict[str, dict[str, list[str]]] = {
  "IMPORT_SEA_FCL": {
    "Documentation": [
      "Bill of Lading Collection",
      "Commercial Invoice Verification",
      "Packing List Review",
      "Certificate of Origin",
      "HS Code Classification",
      "Import License Check",
      "Insurance Certificate",
      "Fumigation Certificate",
    ],
    "Pre-Clearance": [
      "Arrival Notice Processing",
      "Manifest Review",
      "Tariff Calculation",
      "Duty Rate Assessment",
      "Pre-Alert Submission",
      "Shipping Line Coordination",
      "Terminal Liaison",
    ],
    "Customs Declaration": [
      "SAD Filing",
      "Document Verification",
      "Risk Assessment Review",
      "Physical Inspection Coordination",
      "Sample Collection",
      "Lab Test Coordination",
    ],
    "Payment": [
      "Duty Calculation Verification",
      "VAT Calculation",
      "Port Charges Assessment",
      "Handling Fees",
      "Storage Charges",
      "Payment Processing",
      "Receipt Collection",
    ],
    "Release": [
      "Customs Release Order",
      "Terminal Release",
      "Container Pick-up",
      "Gate-Out Documentation",
      "Transport Coordination",
    ],
    "Delivery": [
      "Empty Container Return",
      "Final Delivery Confirmation",
      "Proof of Delivery",
      "Client Sign-Off",
    ],
    "Post-Clearance": [
      "Audit Trail Documentation",
      "Compliance Verification",
      "Record Archiving",
      "Refund Processing",
    ],
  },

  "IMPORT_SEA_LCL": {
    "Documentation": [
      "House Bill of Lading",
      "Master Bill of Lading Verification",
      "Commercial Invoice Verification",
      "Packing List Review",
      "Certificate of Origin",
      "HS Code Classification",
      "Consolidation Manifest",
    ],
    "Pre-Clearance": [
      "Arrival Notice Processing",
      "Deconsolidation Coordination",
      "Manifest Review",
      "Tariff Calculation",
      "Duty Rate Assessment",
      "CFS Liaison",
    ],
    "Customs Declaration": [
      "SAD Filing",
      "Document Verification",
      "Risk Assessment",
      "Physical Inspection",
      "Cargo Segregation",
    ],
    "Payment": [
      "Duty Calculation",
      "VAT Calculation",
      "CFS Charges",
      "Handling Fees",
      "Payment Processing",
    ],
    "Release": [
      "Customs Release",
      "CFS Release",
      "Cargo Collection",
      "Transport Coordination",
    ],
    "Delivery": [
      "Final Delivery",
      "Proof of Delivery",
      "Client Sign-Off",
    ],
    "Post-Clearance": [
      "Audit Documentation",
      "Compliance Check",
      "Record Keeping",
    ],
  },

  "IMPORT_AIR": {
    "Documentation": [
      "Air Waybill Collection",
      "Commercial Invoice",
      "Packing List",
      "Certificate of Origin",
      "HS Code Classification",
      "Special Cargo Documentation",
      "Dangerous Goods Declaration",
    ],
    "Pre-Clearance": [
      "Flight Manifest Review",
      "Arrival Notification",
      "Tariff Calculation",
      "Duty Assessment",
      "Airline Coordination",
      "Ground Handler Liaison",
    ],
    "Customs Declaration": [
      "SAD Filing",
      "E-Declaration Submission",
      "Document Verification",
      "Risk Assessment",
      "Physical Inspection",
      "X-Ray Screening Review",
    ],
    "Payment": [
      "Duty Calculation",
      "VAT Calculation",
      "Airport Handling Charges",
      "Terminal Charges",
      "Payment Processing",
    ],
    "Release": [
      "Customs Release",
      "Airline Release",
      "Cargo Collection",
      "Transport Arrangement",
    ],
    "Delivery": [
      "Final Delivery",
      "Proof of Delivery",
      "Client Sign-Off",
    ],
    "Post-Clearance": [
      "Audit Trail",
      "Compliance Verification",
      "Record Archiving",
    ],
  },

  "IMPORT_LAND": {
    "Documentation": [
      "CMR/Road Consignment Note",
      "Commercial Invoice",
      "Packing List",
      "Certificate of Origin",
      "HS Code Classification",
      "TIR Carnet",
      "Vehicle Documents",
    ],
    "Pre-Clearance": [
      "Border Pre-Alert",
      "Manifest Declaration",
      "Tariff Calculation",
      "Route Planning",
      "Transit Documentation",
    ],
    "Customs Declaration": [
      "Border Declaration",
      "Document Verification",
      "Physical Inspection",
      "Vehicle Inspection",
      "Seal Verification",
    ],
    "Payment": [
      "Duty Calculation",
      "VAT Calculation",
      "Border Crossing Fees",
      "Payment Processing",
    ],
    "Release": [
      "Customs Release",
      "Border Clearance",
      "Transport Continuation",
    ],
    "Delivery": [
      "Final Delivery",
      "Proof of Delivery",
      "Client Sign-Off",
    ],
    "Post-Clearance": [
      "Audit Documentation",
      "Compliance Check",
      "Record Keeping",
    ],
  },

  "EXPORT_SEA": {
    "Documentation": [
      "Commercial Invoice Preparation",
      "Packing List Creation",
      "Bill of Lading Draft",
      "Certificate of Origin Application",
      "HS Code Classification",
      "Export License",
      "Letter of Credit Documents",
    ],
    "Pre-Clearance": [
      "Booking Confirmation",
      "Container Allocation",
      "Stuffing Plan",
      "VGM Declaration",
      "Terminal Booking",
    ],
    "Customs Declaration": [
      "Export Declaration (EX-1)",
      "Document Submission",
      "Exit Summary",
      "Inspection Coordination",
    ],
    "Payment": [
      "Export Fees",
      "Terminal Charges",
      "Documentation Fees",
      "Payment Processing",
    ],
    "Release": [
      "Customs Release",
      "Gate-In Documentation",
      "Loading Confirmation",
      "BL Issuance",
    ],
    "Shipping": [
      "Vessel Loading Confirmation",
      "Sailing Confirmation",
      "Document Dispatch",
      "Client Notification",
    ],
    "Post-Clearance": [
      "Audit Trail",
      "Export Statistics",
      "Record Archiving",
    ],
  },

  "EXPORT_AIR": {
    "Documentation": [
      "Commercial Invoice",
      "Packing List",
      "AWB Preparation",
      "Certificate of Origin",
      "HS Code Classification",
      "Export Permit",
      "Dangerous Goods Declaration",
    ],
    "Pre-Clearance": [
      "Flight Booking",
      "Cargo Dimensions Check",
      "Security Screening",
      "Airline Coordination",
    ],
    "Customs Declaration": [
      "Export Declaration",
      "Document Verification",
      "Physical Inspection",
    ],
    "Payment": [
      "Airline Charges",
      "Handling Fees",
      "Export Fees",
      "Payment Processing",
    ],
    "Release": [
      "Customs Release",
      "Cargo Acceptance",
      "AWB Finalization",
    ],
    "Shipping": [
      "Flight Manifest",
      "Loading Confirmation",
      "Departure Confirmation",
      "Client Notification",
    ],
    "Post-Clearance": [
      "Audit Trail",
      "Record Archiving",
    ],
  },

  "EXPORT_LAND": {
    "Documentation": [
      "Commercial Invoice",
      "Packing List",
      "CMR/Consignment Note",
      "Certificate of Origin",
      "HS Code Classification",
      "Export Permit",
      "TIR Carnet",
    ],
    "Pre-Clearance": [
      "Transport Booking",
      "Loading Plan",
      "Route Planning",
      "Border Pre-Alert",
    ],
    "Customs Declaration": [
      "Export Declaration",
      "Document Verification",
      "Vehicle Inspection",
      "Seal Application",
    ],
    "Payment": [
      "Export Fees",
      "Transport Charges",
      "Border Fees",
      "Payment Processing",
    ],
    "Release": [
      "Customs Release",
      "Border Clearance",
      "Departure Confirmation",
    ],
    "Post-Clearance": [
      "Proof of Exit",
      "Audit Trail",
      "Record Archiving",
    ],
  },

  "TRANSIT": {
    "Documentation": [
      "Transit Declaration (T1/T2)",
      "Bill of Lading/AWB",
      "Commercial Invoice",
      "Packing List",
      "Guarantee/Bond",
      "TIR Carnet",
    ],
    "Entry Clearance": [
      "Entry Point Declaration",
      "Document Verification",
      "Seal Application",
      "Transit Route Approval",
    ],
    "Transit Monitoring": [
      "GPS Tracking",
      "Checkpoint Verification",
      "Time Limit Monitoring",
      "Route Compliance",
    ],
    "Exit Clearance": [
      "Exit Declaration",
      "Seal Verification",
      "Document Discharge",
      "Guarantee Release",
    ],
    "Post-Transit": [
      "Transit Completion Report",
      "Compliance Verification",
      "Record Archiving",
    ],
  },

  "RE_EXPORT": {
    "Documentation": [
      "Original Import Declaration",
      "Re-Export Application",
      "Commercial Invoice",
      "Packing List",
      "HS Code Verification",
      "Duty Exemption Application",
    ],
    "Pre-Clearance": [
      "Duty Drawback Calculation",
      "Original Entry Verification",
      "Booking Confirmation",
    ],
    "Customs Declaration": [
      "Re-Export Declaration",
      "Document Verification",
      "Physical Inspection",
      "Goods Identification",
    ],
    "Payment": [
      "Fee Calculation",
      "Refund Processing",
      "Payment Reconciliation",
    ],
    "Release": [
      "Customs Release",
      "Export Confirmation",
      "Document Finalization",
    ],
    "Post-Clearance": [
      "Duty Refund Collection",
      "Audit Trail",
      "Record Archiving",
    ],
  },
}


def shipment_types() -> list[str]:
  return list(CLEARANCE_STAGES.keys())


def stages_for(shipment_type: str) -> list[str]:
  return list(CLEARANCE_STAGES.get(shipment_type, {}).keys())


def activities_for(shipment_type: str, stage: str | None = None) -> list[Activity]:
  """Flatten the catalog for one shipment type (optionally one stage) into activities."""
  out: list[Activity] = []
  for stage_name, tasks in CLEARANCE_STAGES.get(shipment_type, {}).items():
    if stage is not None and stage_name != stage:
      continue
    for task in tasks:
      out.append(Activity(shipment_type=shipment_type, stage=stage_name, substage=stage_name, task=task))
  return out
