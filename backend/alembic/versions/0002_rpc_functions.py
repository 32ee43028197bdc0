"""stored procedures: is_admin, make_admin, update_site_settings, view counters

Revision ID: 0002_rpc_functions
Revises: 0001_initial_schema
Create Date: 2025-09-02 10:30:00
"""

from __future__ import annotations

from alembic import op

# revision identifiers, used by Alembic.
revision = "0002_rpc_functions"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


FUNCTIONS = [
    """
    CREATE OR REPLACE FUNCTION is_admin(user_id uuid) RETURNS boolean
    LANGUAGE sql STABLE SECURITY DEFINER AS $$
        SELECT coalesce((SELECT p.is_admin FROM profiles p WHERE p.id = is_admin.user_id), false);
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION make_admin(target_user_id uuid) RETURNS void
    LANGUAGE plpgsql SECURITY DEFINER AS $$
    BEGIN
        UPDATE profiles SET is_admin = true, updated_at = now() WHERE id = target_user_id;
        IF NOT FOUND THEN
            RAISE EXCEPTION 'profile % not found', target_user_id USING ERRCODE = 'no_data_found';
        END IF;
    END;
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION update_site_settings(patch jsonb) RETURNS SETOF site_settings
    LANGUAGE plpgsql SECURITY DEFINER AS $$
    BEGIN
        RETURN QUERY
        UPDATE site_settings s SET
            show_view_counts = CASE WHEN patch ? 'show_view_counts'
                THEN (patch->>'show_view_counts')::boolean ELSE s.show_view_counts END,
            show_featured_first = CASE WHEN patch ? 'show_featured_first'
                THEN (patch->>'show_featured_first')::boolean ELSE s.show_featured_first END,
            enable_blog = CASE WHEN patch ? 'enable_blog'
                THEN (patch->>'enable_blog')::boolean ELSE s.enable_blog END,
            enable_gallery = CASE WHEN patch ? 'enable_gallery'
                THEN (patch->>'enable_gallery')::boolean ELSE s.enable_gallery END,
            meta_title = CASE WHEN patch ? 'meta_title' THEN patch->>'meta_title' ELSE s.meta_title END,
            meta_description = CASE WHEN patch ? 'meta_description'
                THEN patch->>'meta_description' ELSE s.meta_description END,
            resume_url = CASE WHEN patch ? 'resume_url' THEN patch->>'resume_url' ELSE s.resume_url END,
            updated_at = now()
        WHERE s.id = true
        RETURNING s.*;
        IF NOT FOUND THEN
            RAISE EXCEPTION 'site_settings row missing' USING ERRCODE = 'no_data_found';
        END IF;
    END;
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION increment_view_count(project_id uuid) RETURNS void
    LANGUAGE sql SECURITY DEFINER AS $$
        UPDATE projects SET view_count = view_count + 1 WHERE id = increment_view_count.project_id;
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION increment_blog_view_count(post_id uuid) RETURNS void
    LANGUAGE sql SECURITY DEFINER AS $$
        UPDATE blog_posts SET view_count = view_count + 1 WHERE id = increment_blog_view_count.post_id;
    $$
    """,
]

DROPS = [
    "DROP FUNCTION IF EXISTS increment_blog_view_count(uuid)",
    "DROP FUNCTION IF EXISTS increment_view_count(uuid)",
    "DROP FUNCTION IF EXISTS update_site_settings(jsonb)",
    "DROP FUNCTION IF EXISTS make_admin(uuid)",
    "DROP FUNCTION IF EXISTS is_admin(uuid)",
]


def upgrade() -> None:
    for ddl in FUNCTIONS:
        op.execute(ddl)


def downgrade() -> None:
    for ddl in DROPS:
        op.execute(ddl)
