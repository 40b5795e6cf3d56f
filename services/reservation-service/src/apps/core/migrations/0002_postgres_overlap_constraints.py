"""
Exclusion constraints that make overlapping Active/Used reservations
impossible at commit time: one per room, one for the shared accessory.

Only PostgreSQL supports them; other backends rely on the service-level
conflict check.
"""

from django.db import migrations

BLOCKING = "status IN ('activa', 'utilizada')"

FORWARD = [
    "CREATE EXTENSION IF NOT EXISTS btree_gist",
    f"""
    ALTER TABLE reservations ADD CONSTRAINT reservations_no_room_overlap
    EXCLUDE USING gist (
        consultorio_id WITH =,
        tstzrange(start_time, end_time, '[)') WITH &&
    ) WHERE ({BLOCKING})
    """,
    f"""
    ALTER TABLE reservations ADD CONSTRAINT reservations_no_accessory_overlap
    EXCLUDE USING gist (
        tstzrange(start_time, end_time, '[)') WITH &&
    ) WHERE (uses_shared_accessory AND {BLOCKING})
    """,
]

BACKWARD = [
    "ALTER TABLE reservations DROP CONSTRAINT IF EXISTS reservations_no_accessory_overlap",
    "ALTER TABLE reservations DROP CONSTRAINT IF EXISTS reservations_no_room_overlap",
]


def _run(statements):
    def apply(apps, schema_editor):
        if schema_editor.connection.vendor != 'postgresql':
            return
        for statement in statements:
            schema_editor.execute(statement)
    return apply


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(_run(FORWARD), _run(BACKWARD)),
    ]
