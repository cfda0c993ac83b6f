from __future__ import annotations
"""server/app/migrations/versions/0001_initial.py
~~~~~~~~~~~~~~~~~~~~~~~~
Schéma initial (PostgreSQL ; reste portable SQLite pour les tests).
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "installations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.current_timestamp(), nullable=True),
    )

    op.create_table(
        "installed_sensors",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("installation_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("measurement_type", sa.String(50), nullable=False),
        sa.Column("unit", sa.String(20), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.current_timestamp(), nullable=True),
        sa.ForeignKeyConstraint(["installation_id"], ["installations.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_installed_sensors_installation_id", "installed_sensors", ["installation_id"])

    op.create_table(
        "sensor_thresholds",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("sensor_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("min_value", sa.Float(), nullable=True),
        sa.Column("max_value", sa.Float(), nullable=True),
        sa.Column("optimal_value", sa.Float(), nullable=True),
        sa.Column("alert_level", sa.String(16), server_default="warning", nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
        sa.ForeignKeyConstraint(["sensor_id"], ["installed_sensors.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("sensor_id", name="uq_sensor_thresholds_sensor_id"),
        sa.CheckConstraint(
            "min_value IS NULL OR max_value IS NULL OR min_value <= max_value",
            name="ck_sensor_thresholds_min_le_max",
        ),
        sa.CheckConstraint(
            "alert_level IN ('info', 'warning', 'critical')",
            name="ck_sensor_thresholds_alert_level",
        ),
    )

    op.create_table(
        "recommended_thresholds",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("measurement_type", sa.String(50), nullable=False),
        sa.Column("species", sa.String(100), nullable=True),
        sa.Column("min_value", sa.Float(), nullable=True),
        sa.Column("max_value", sa.Float(), nullable=True),
        sa.Column("optimal_value", sa.Float(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index("ix_recommended_thresholds_measurement_type", "recommended_thresholds", ["measurement_type"])

    op.create_table(
        "alerts",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("installation_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("sensor_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("threshold_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(16), nullable=False),
        sa.Column("recorded_value", sa.Float(), nullable=True),
        sa.Column("breach_direction", sa.String(16), nullable=True),
        sa.Column("read", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("attended", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("resolved", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
        sa.Column("resolved_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.ForeignKeyConstraint(["installation_id"], ["installations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sensor_id"], ["installed_sensors.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "NOT resolved OR (attended AND resolved_at IS NOT NULL)",
            name="ck_alerts_resolved_implies_attended",
        ),
        sa.CheckConstraint(
            "resolved OR resolved_at IS NULL",
            name="ck_alerts_unresolved_has_no_resolved_at",
        ),
        sa.CheckConstraint(
            "severity IN ('info', 'warning', 'critical')",
            name="ck_alerts_severity",
        ),
    )
    op.create_index("ix_alerts_sensor_open", "alerts", ["sensor_id", "resolved", "breach_direction"])
    op.create_index("ix_alerts_installation_created", "alerts", ["installation_id", "created_at"])

    op.create_table(
        "schedule_rules",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("installation_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("kind", sa.String(16), server_default="time_window", nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("crosses_midnight", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("condition_min", sa.Float(), nullable=True),
        sa.Column("condition_max", sa.Float(), nullable=True),
        sa.Column("measurement_type", sa.String(50), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
        sa.ForeignKeyConstraint(["installation_id"], ["installations.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_schedule_rules_installation_id", "schedule_rules", ["installation_id"])

    op.create_table(
        "sensor_readings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("sensor_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("taken_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["sensor_id"], ["installed_sensors.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_sensor_readings_sensor_taken_at", "sensor_readings", ["sensor_id", "taken_at"])


def downgrade() -> None:
    op.drop_index("ix_sensor_readings_sensor_taken_at", table_name="sensor_readings")
    op.drop_table("sensor_readings")
    op.drop_index("ix_schedule_rules_installation_id", table_name="schedule_rules")
    op.drop_table("schedule_rules")
    op.drop_index("ix_alerts_installation_created", table_name="alerts")
    op.drop_index("ix_alerts_sensor_open", table_name="alerts")
    op.drop_table("alerts")
    op.drop_index("ix_recommended_thresholds_measurement_type", table_name="recommended_thresholds")
    op.drop_table("recommended_thresholds")
    op.drop_table("sensor_thresholds")
    op.drop_index("ix_installed_sensors_installation_id", table_name="installed_sensors")
    op.drop_table("installed_sensors")
    op.drop_table("installations")
