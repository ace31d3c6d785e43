"""
FleetLedger Demo Setup Script
Creates the tables, loads a small roster and one extracted toll document,
and prints how the movements reconciled.
"""

import asyncio
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import init_db, DATABASE_URL
from schemas import ExtractedItem, FleetEntry, UploadedFileCreate
from services.pipeline_service import PipelineService
from services.storage_service import get_storage_service


DEMO_FLEET = [
    FleetEntry(plate="AB123CD", owner="Transportes ACME", tag="0123456789", unit_code="U1"),
    FleetEntry(plate="AC456EF", owner="Desconocido", tag="9988776655", unit_code="U2"),
    FleetEntry(plate="AD789GH", owner="Logística Núñez", unit_code="U3"),
]

DEMO_ITEMS = [
    ExtractedItem(plate="AB-123 CD", owner="?", amount=1250.0, concept="Peaje Riccheri", date="2025-02-03"),
    ExtractedItem(plate="", owner="Juan Perez", amount=980.5, concept="Autopista Buenos Aires - La Plata",
                  date="2025-02-04", tag="00123456789"),
    ExtractedItem(plate="ZZ999ZZ", owner="Otro", amount=310.0, concept="Peaje Dock Sud", date="2025-02-05"),
]


async def main():
    print("\n" + "=" * 60)
    print("🚚 FleetLedger Demo Setup")
    print(f"   Database: {DATABASE_URL}")
    print("=" * 60)

    await init_db()
    print("\n✅ Tables created")

    pipeline = PipelineService(get_storage_service())

    fleet_result = await pipeline.replace_fleet(DEMO_FLEET)
    print(f"✅ Fleet roster loaded: {fleet_result.fleet_size} vehicles")

    result = await pipeline.ingest_records(
        UploadedFileCreate(name="demo-peajes.pdf", mime_type="application/pdf"),
        DEMO_ITEMS,
    )

    print(f"\n📋 Reconciled movements (file {result.file_id}):")
    for record in result.records:
        icon = "✅" if record.is_verified else "❌"
        print(f"   {icon} {record.plate or '-':8} {record.owner:20} unit={record.unit_code or '-'}")

    print("-" * 40)
    print(f"   Verified: {result.summary.verified}/{result.summary.total}")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
