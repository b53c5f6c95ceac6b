# backend/dosetrack/db/models/__init__.py

from dosetrack.db.models.user import User
from dosetrack.db.models.pet import Pet
from dosetrack.db.models.medication import Medication
from dosetrack.db.models.medication_dose import MedicationDose
