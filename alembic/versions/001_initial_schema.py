"""Initial schema: identity, workspaces, funnel content, payments, domains.

Creates the Funnel Builder schema in FK-dependency order:

1. users                          - identity
2. workspaces                     - tenants (FK → users)
3. workspace_members              - membership (FK → workspaces, users)
4. workspace_role_perm_templates  - per-role defaults (FK → workspaces)
5. themes                         - styling; funnel_id FK added in step 8
6. funnels                        - (FK → workspaces, users, themes)
7. funnel_settings, pages         - funnel children (FK → funnels)
8. fk_themes_funnel_id            - closes the funnels <-> themes cycle
9. payments                       - purchases (FK → users, workspaces)
10. workspace_clones              - clone provenance (FK → workspaces, users, payments)
11. domains                       - served hostnames (FK → workspaces, users)

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("NOW()")),
    ]


# ---------------------------------------------------------------------------
# upgrade
# ---------------------------------------------------------------------------

def upgrade() -> None:
    """Create all tables and indexes."""

    # ------------------------------------------------------------------
    # 1. users
    # ------------------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("username", sa.String(150), nullable=False),
        sa.Column("first_name", sa.String(150), nullable=True),
        sa.Column("last_name", sa.String(150), nullable=True),
        sa.Column("plan", sa.String(30), nullable=False, server_default=sa.text("'FREE'")),
        *_timestamps(),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ------------------------------------------------------------------
    # 2. workspaces
    # ------------------------------------------------------------------
    op.create_table(
        "workspaces",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column("settings", JSONB, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'ACTIVE'")),
        sa.Column("plan_type", sa.String(30), nullable=False, server_default=sa.text("'FREE'")),
        *_timestamps(),
    )
    op.create_index("ix_workspaces_slug", "workspaces", ["slug"], unique=True)
    op.create_index("ix_workspaces_owner_id", "workspaces", ["owner_id"])

    # ------------------------------------------------------------------
    # 3. workspace_members
    # ------------------------------------------------------------------
    op.create_table(
        "workspace_members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("workspace_id", sa.Integer, sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'ACTIVE'")),
        sa.Column("permissions", JSONB, nullable=False, server_default=sa.text("'[]'")),
        *_timestamps(),
        sa.UniqueConstraint("workspace_id", "user_id", name="uq_workspace_member"),
    )
    op.create_index("ix_workspace_members_workspace_id", "workspace_members", ["workspace_id"])
    op.create_index("ix_workspace_members_user_id", "workspace_members", ["user_id"])

    # ------------------------------------------------------------------
    # 4. workspace_role_perm_templates
    # ------------------------------------------------------------------
    op.create_table(
        "workspace_role_perm_templates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("workspace_id", sa.Integer, sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("permissions", JSONB, nullable=False, server_default=sa.text("'[]'")),
        *_timestamps(),
        sa.UniqueConstraint("workspace_id", "role", name="uq_workspace_role_template"),
    )
    op.create_index(
        "ix_workspace_role_perm_templates_workspace_id",
        "workspace_role_perm_templates",
        ["workspace_id"],
    )

    # ------------------------------------------------------------------
    # 5. themes (funnel_id FK is added after funnels exists)
    # ------------------------------------------------------------------
    op.create_table(
        "themes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("background_color", sa.String(32), nullable=False),
        sa.Column("text_color", sa.String(32), nullable=False),
        sa.Column("button_color", sa.String(32), nullable=False),
        sa.Column("button_text_color", sa.String(32), nullable=False),
        sa.Column("border_color", sa.String(32), nullable=False),
        sa.Column("option_color", sa.String(32), nullable=False),
        sa.Column("font_family", sa.String(200), nullable=False),
        sa.Column("border_radius", sa.Integer, nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'CUSTOM'")),
        sa.Column("funnel_id", sa.Integer, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_themes_funnel_id", "themes", ["funnel_id"])

    # ------------------------------------------------------------------
    # 6. funnels
    # ------------------------------------------------------------------
    op.create_table(
        "funnels",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'DRAFT'")),
        sa.Column("workspace_id", sa.Integer, sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_by", sa.Integer, sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("active_theme_id", sa.Integer, sa.ForeignKey("themes.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("workspace_id", "slug", name="uq_funnel_workspace_slug"),
    )
    op.create_index("ix_funnels_workspace_id", "funnels", ["workspace_id"])

    # ------------------------------------------------------------------
    # 7. funnel_settings and pages
    # ------------------------------------------------------------------
    op.create_table(
        "funnel_settings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("funnel_id", sa.Integer, sa.ForeignKey("funnels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("default_seo_title", sa.String(300), nullable=True),
        sa.Column("default_seo_description", sa.Text, nullable=True),
        sa.Column("default_seo_keywords", sa.Text, nullable=True),
        sa.Column("favicon", sa.String(2048), nullable=True),
        sa.Column("og_image", sa.String(2048), nullable=True),
        sa.Column("google_analytics_id", sa.String(100), nullable=True),
        sa.Column("facebook_pixel_id", sa.String(100), nullable=True),
        sa.Column("custom_tracking_scripts", JSONB, nullable=True),
        sa.Column("enable_cookie_consent", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("cookie_consent_text", sa.Text, nullable=True),
        sa.Column("privacy_policy_url", sa.String(2048), nullable=True),
        sa.Column("terms_of_service_url", sa.String(2048), nullable=True),
        sa.Column("language", sa.String(10), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("date_format", sa.String(32), nullable=True),
        sa.Column("is_password_protected", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("password_hash", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("funnel_id", name="uq_funnel_settings_funnel_id"),
    )

    op.create_table(
        "pages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("content", JSONB, nullable=True),
        sa.Column("order", sa.Integer, nullable=False),
        sa.Column("linking_id", sa.String(100), nullable=False),
        sa.Column("funnel_id", sa.Integer, sa.ForeignKey("funnels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'PAGE'")),
        sa.Column("seo_title", sa.String(300), nullable=True),
        sa.Column("seo_description", sa.Text, nullable=True),
        sa.Column("seo_keywords", sa.Text, nullable=True),
        sa.Column("visits", sa.Integer, nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.UniqueConstraint("funnel_id", "order", name="uq_page_funnel_order"),
        sa.UniqueConstraint("funnel_id", "linking_id", name="uq_page_funnel_linking_id"),
    )
    op.create_index("ix_pages_funnel_id", "pages", ["funnel_id"])

    # ------------------------------------------------------------------
    # 8. close the funnels <-> themes cycle
    # ------------------------------------------------------------------
    op.create_foreign_key(
        "fk_themes_funnel_id",
        "themes",
        "funnels",
        ["funnel_id"],
        ["id"],
        ondelete="CASCADE",
    )

    # ------------------------------------------------------------------
    # 9. payments
    # ------------------------------------------------------------------
    op.create_table(
        "payments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("transaction_id", sa.String(200), nullable=False),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("payment_type", sa.String(50), nullable=True),
        sa.Column("buyer_id", sa.Integer, sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("workspace_id", sa.Integer, sa.ForeignKey("workspaces.id", ondelete="SET NULL"), nullable=True),
        sa.Column("raw_data", JSONB, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payments_transaction_id", "payments", ["transaction_id"], unique=True)
    op.create_index("ix_payments_buyer_id", "payments", ["buyer_id"])

    # ------------------------------------------------------------------
    # 10. workspace_clones
    # ------------------------------------------------------------------
    op.create_table(
        "workspace_clones",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("source_workspace_id", sa.Integer, sa.ForeignKey("workspaces.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("cloned_workspace_id", sa.Integer, sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("seller_id", sa.Integer, sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("buyer_id", sa.Integer, sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("payment_id", sa.Integer, sa.ForeignKey("payments.id", ondelete="RESTRICT"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("cloned_workspace_id", name="uq_workspace_clones_cloned_workspace_id"),
        sa.UniqueConstraint("payment_id", name="uq_workspace_clones_payment_id"),
    )
    op.create_index("ix_workspace_clones_source_workspace_id", "workspace_clones", ["source_workspace_id"])
    op.create_index("ix_workspace_clones_seller_id", "workspace_clones", ["seller_id"])
    op.create_index("ix_workspace_clones_buyer_id", "workspace_clones", ["buyer_id"])

    # ------------------------------------------------------------------
    # 11. domains
    # ------------------------------------------------------------------
    op.create_table(
        "domains",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("hostname", sa.String(253), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("ssl_status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("workspace_id", sa.Integer, sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=True),
        sa.Column("created_by", sa.Integer, sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("cloudflare_record_id", sa.String(64), nullable=True),
        sa.Column("cloudflare_zone_id", sa.String(64), nullable=True),
        sa.Column("last_verified_at", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_domains_hostname", "domains", ["hostname"], unique=True)
    op.create_index("ix_domains_workspace_id", "domains", ["workspace_id"])


# ---------------------------------------------------------------------------
# downgrade
# ---------------------------------------------------------------------------

def downgrade() -> None:
    """Drop all tables created by this migration in reverse dependency order."""
    op.drop_table("domains")
    op.drop_table("workspace_clones")
    op.drop_table("payments")
    op.drop_constraint("fk_themes_funnel_id", "themes", type_="foreignkey")
    op.drop_table("pages")
    op.drop_table("funnel_settings")
    op.drop_table("funnels")
    op.drop_table("themes")
    op.drop_table("workspace_role_perm_templates")
    op.drop_table("workspace_members")
    op.drop_table("workspaces")
    op.drop_table("users")
