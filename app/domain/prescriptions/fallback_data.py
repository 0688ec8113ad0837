"""Canned prescriptions served when no database is reachable."""

from datetime import datetime
from typing import Any, Dict

DEMO_PHARMACIST_ID = "demo-pharmacist-001"
DEMO_PHARMACIST_NAME = "Demo Pharmacist"
DEMO_PHARMACY_NAME = "Demo Pharmacy"


def _med(name: str, dosage: str, frequency: str, duration: str, instructions: str) -> Dict[str, str]:
    return {
        "name": name,
        "dosage": dosage,
        "frequency": frequency,
        "duration": duration,
        "instructions": instructions,
    }


FALLBACK_PRESCRIPTIONS: Dict[str, Dict[str, Any]] = {
    # Thyroid patient
    "507f1f77bcf86cd799439011": {
        "doctor_id": "694b8fd382b8ac9759e49e54",
        "patient_id": "694b8fd382b8ac9759e49e57",
        "patient_name": "Sarah Ahmed",
        "patient_email": "sarah.ahmed@test.com",
        "doctor_name": "Dr. Ali Hassan",
        "hospital_name": "City Medical Center",
        "diagnosis": "Hypothyroidism",
        "medications": [
            _med("Levothyroxine 50mcg", "1 tablet", "Once daily", "30 days",
                 "Take on empty stomach, 30 min before breakfast"),
            _med("Vitamin D3 1000IU", "1 capsule", "Once daily", "30 days", "Take with food"),
        ],
        "instructions": "Regular thyroid function tests every 3 months. Avoid soy products near medication time.",
        "follow_up_date": datetime(2026, 2, 26),
        "status": "active",
        "created_at": datetime(2026, 1, 20, 9, 0),
        "updated_at": datetime(2026, 1, 20, 9, 0),
    },
    # Diabetes patient
    "507f1f77bcf86cd799439012": {
        "doctor_id": "694b8fd382b8ac9759e49e55",
        "patient_id": "694b8fd382b8ac9759e49e58",
        "patient_name": "Mohammad Khan",
        "patient_email": "mohammad.khan@test.com",
        "doctor_name": "Dr. Fatima Zahra",
        "hospital_name": "National Hospital",
        "diagnosis": "Type 2 Diabetes Mellitus",
        "medications": [
            _med("Metformin 500mg", "1 tablet", "Twice daily", "30 days", "Take with meals"),
            _med("Glimepiride 2mg", "1 tablet", "Once daily", "30 days", "Take before breakfast"),
            _med("Atorvastatin 10mg", "1 tablet", "Once daily", "30 days", "Take at bedtime"),
        ],
        "instructions": "Monitor blood sugar levels daily. Follow diabetic diet. Regular exercise recommended.",
        "follow_up_date": datetime(2026, 2, 15),
        "status": "active",
        "created_at": datetime(2026, 1, 18, 14, 30),
        "updated_at": datetime(2026, 1, 18, 14, 30),
    },
    # Hypertension patient
    "507f1f77bcf86cd799439013": {
        "doctor_id": "694b8fd382b8ac9759e49e56",
        "patient_id": "694b8fd382b8ac9759e49e59",
        "patient_name": "Aisha Begum",
        "patient_email": "aisha.begum@test.com",
        "doctor_name": "Dr. Ahmed Raza",
        "hospital_name": "Heart Care Institute",
        "diagnosis": "Essential Hypertension",
        "medications": [
            _med("Amlodipine 5mg", "1 tablet", "Once daily", "30 days", "Take in the morning"),
            _med("Losartan 50mg", "1 tablet", "Once daily", "30 days", "Take with or without food"),
            _med("Aspirin 75mg", "1 tablet", "Once daily", "30 days", "Take after lunch"),
        ],
        "instructions": "Monitor BP twice daily. Reduce salt intake. Avoid stress.",
        "follow_up_date": datetime(2026, 2, 20),
        "status": "active",
        "created_at": datetime(2026, 1, 22, 11, 15),
        "updated_at": datetime(2026, 1, 22, 11, 15),
    },
    # Infection, antibiotics course
    "507f1f77bcf86cd799439014": {
        "doctor_id": "694b8fd382b8ac9759e49e57",
        "patient_id": "694b8fd382b8ac9759e49e60",
        "patient_name": "Zain Ali",
        "patient_email": "zain.ali@test.com",
        "doctor_name": "Dr. Sana Malik",
        "hospital_name": "Community Health Clinic",
        "diagnosis": "Upper Respiratory Tract Infection",
        "medications": [
            _med("Amoxicillin 500mg", "1 capsule", "Three times daily", "7 days", "Take every 8 hours"),
            _med("Paracetamol 500mg", "1-2 tablets", "As needed", "5 days",
                 "Take for fever/pain, max 4 times daily"),
            _med("Cetirizine 10mg", "1 tablet", "Once daily", "5 days", "Take at bedtime"),
        ],
        "instructions": "Complete full course of antibiotics. Rest and drink plenty of fluids.",
        "follow_up_date": datetime(2026, 2, 3),
        "status": "active",
        "created_at": datetime(2026, 1, 25, 16, 45),
        "updated_at": datetime(2026, 1, 25, 16, 45),
    },
    # Already dispensed
    "507f1f77bcf86cd799439015": {
        "doctor_id": "694b8fd382b8ac9759e49e58",
        "patient_id": "694b8fd382b8ac9759e49e61",
        "patient_name": "Hira Nawaz",
        "patient_email": "hira.nawaz@test.com",
        "doctor_name": "Dr. Imran Sheikh",
        "hospital_name": "Family Medical Center",
        "diagnosis": "Migraine",
        "medications": [
            _med("Sumatriptan 50mg", "1 tablet", "As needed", "10 days", "Take at onset of migraine"),
            _med("Propranolol 40mg", "1 tablet", "Twice daily", "30 days", "Take with food"),
        ],
        "instructions": "Avoid triggers like bright lights and loud sounds. Maintain regular sleep schedule.",
        "follow_up_date": datetime(2026, 2, 10),
        "status": "dispensed",
        "pharmacist_id": DEMO_PHARMACIST_ID,
        "pharmacist_name": DEMO_PHARMACIST_NAME,
        "pharmacy_name": DEMO_PHARMACY_NAME,
        "validated_at": datetime(2026, 1, 24, 10, 30),
        "medicine_statuses": [
            {"medicineName": "Sumatriptan 50mg", "status": "given", "updatedAt": "2026-01-24T10:30:00"},
            {"medicineName": "Propranolol 40mg", "status": "given", "updatedAt": "2026-01-24T10:30:00"},
        ],
        "created_at": datetime(2026, 1, 15, 8, 20),
        "updated_at": datetime(2026, 1, 24, 10, 30),
    },
    # Pain management
    "507f1f77bcf86cd799439016": {
        "doctor_id": "694b8fd382b8ac9759e49e59",
        "patient_id": "694b8fd382b8ac9759e49e62",
        "patient_name": "Bilal Ahmad",
        "patient_email": "bilal.ahmad@test.com",
        "doctor_name": "Dr. Nadia Hussain",
        "hospital_name": "Bone & Joint Hospital",
        "diagnosis": "Lumbar Spondylosis",
        "medications": [
            _med("Diclofenac 50mg", "1 tablet", "Twice daily", "14 days", "Take after meals"),
            _med("Omeprazole 20mg", "1 capsule", "Once daily", "14 days", "Take before breakfast"),
            _med("Thiamine 100mg", "1 tablet", "Once daily", "30 days", "Take with food"),
            _med("Calcium + Vitamin D", "1 tablet", "Once daily", "30 days", "Take after dinner"),
        ],
        "instructions": "Avoid heavy lifting. Do prescribed physiotherapy exercises. Use lumbar support belt.",
        "follow_up_date": datetime(2026, 2, 17),
        "status": "active",
        "created_at": datetime(2026, 1, 23, 13, 0),
        "updated_at": datetime(2026, 1, 23, 13, 0),
    },
}


def placeholder_prescription(prescription_id: str) -> Dict[str, Any]:
    """Generic active prescription for any well-formed id missing from the table"""
    return {
        "id": prescription_id,
        "doctor_id": "694b8fd382b8ac9759e49e54",
        "patient_id": "694b8fd382b8ac9759e49e57",
        "patient_name": "Demo Patient",
        "patient_email": "patient@demo.com",
        "doctor_name": "Dr. Demo Doctor",
        "hospital_name": "Demo Hospital",
        "diagnosis": "General Checkup",
        "medications": [
            _med("Multivitamin", "1 tablet", "Once daily", "30 days", "Take with breakfast"),
            _med("Vitamin C 500mg", "1 tablet", "Once daily", "30 days", "Take with food"),
        ],
        "instructions": "Maintain healthy diet and regular exercise.",
        "follow_up_date": datetime(2026, 2, 27),
        "status": "active",
        "created_at": datetime(2026, 1, 27, 10, 0),
        "updated_at": datetime(2026, 1, 27, 10, 0),
    }
