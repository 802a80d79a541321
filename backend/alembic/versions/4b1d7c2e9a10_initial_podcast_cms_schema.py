"""initial podcast cms schema: users, episodes, platforms, insights, translations, logs

Revision ID: 4b1d7c2e9a10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '4b1d7c2e9a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def _translation_columns() -> list[sa.Column]:
    return [
        sa.Column('language_code', sa.String(5), sa.ForeignKey('languages.code', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.Text, nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('content', sa.Text, nullable=True),
        sa.Column('summary', sa.Text, nullable=True),
        sa.Column('translation_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('translation_method', sa.String(20), nullable=False, server_default='manual'),
        sa.Column('translation_quality_score', sa.Numeric(3, 2), nullable=True),
        sa.Column('translated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ai_model', sa.String(100), nullable=True),
        sa.Column('prompt_tokens', sa.Integer, nullable=True),
        sa.Column('completion_tokens', sa.Integer, nullable=True),
        *_timestamps(),
    ]


def upgrade() -> None:
    # ─── users ───
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='guest'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ─── episodes ───
    op.create_table(
        'episodes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('content', sa.Text, nullable=True),
        sa.Column('summary', sa.Text, nullable=True),
        sa.Column('series', sa.String(50), nullable=False, server_default='wtf'),
        sa.Column('season', sa.Integer, nullable=False, server_default='1'),
        sa.Column('episode_number', sa.Integer, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('publish_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.String(20), nullable=True),
        sa.Column('image_url', sa.Text, nullable=True),
        sa.Column('audio_url', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_episodes_slug', 'episodes', ['slug'], unique=True)
    op.create_index('ix_episodes_series', 'episodes', ['series'])
    op.create_index('ix_episodes_status', 'episodes', ['status'])
    op.create_index('ix_episodes_series_season_episode', 'episodes', ['series', 'season', 'episode_number'])

    # ─── episode_platforms ───
    op.create_table(
        'episode_platforms',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('episode_id', UUID(as_uuid=True), sa.ForeignKey('episodes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform_name', sa.String(50), nullable=False),
        sa.Column('platform_url', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.UniqueConstraint('episode_id', 'platform_name', name='uq_episode_platforms_episode_id'),
    )
    op.create_index('ix_episode_platforms_episode_id', 'episode_platforms', ['episode_id'])

    # ─── insights ───
    op.create_table(
        'insights',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('content', sa.Text, nullable=True),
        sa.Column('summary', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        *_timestamps(),
    )
    op.create_index('ix_insights_slug', 'insights', ['slug'], unique=True)
    op.create_index('ix_insights_status', 'insights', ['status'])

    # ─── languages ───
    op.create_table(
        'languages',
        sa.Column('code', sa.String(5), primary_key=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('native_name', sa.String(50), nullable=False),
        sa.Column('is_default', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )

    # ─── translations ───
    op.create_table(
        'episodes_translations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('episode_id', UUID(as_uuid=True), sa.ForeignKey('episodes.id', ondelete='CASCADE'), nullable=False),
        *_translation_columns(),
        sa.UniqueConstraint('episode_id', 'language_code', name='uq_episodes_translations_episode_id'),
    )
    op.create_index('ix_episodes_translations_episode_id', 'episodes_translations', ['episode_id'])
    op.create_index('ix_episodes_translations_translation_status', 'episodes_translations', ['translation_status'])

    op.create_table(
        'insights_translations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('insight_id', UUID(as_uuid=True), sa.ForeignKey('insights.id', ondelete='CASCADE'), nullable=False),
        *_translation_columns(),
        sa.UniqueConstraint('insight_id', 'language_code', name='uq_insights_translations_insight_id'),
    )
    op.create_index('ix_insights_translations_insight_id', 'insights_translations', ['insight_id'])
    op.create_index('ix_insights_translations_translation_status', 'insights_translations', ['translation_status'])

    # ─── audit_logs / ai_call_logs ───
    op.create_table(
        'audit_logs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('actor_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('actor_email', sa.String(255), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', UUID(as_uuid=True), nullable=True),
        sa.Column('before_state', sa.Text, nullable=True),
        sa.Column('after_state', sa.Text, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])

    op.create_table(
        'ai_call_logs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('content_type', sa.String(20), nullable=True),
        sa.Column('content_id', UUID(as_uuid=True), nullable=True),
        sa.Column('call_type', sa.String(100), nullable=False),
        sa.Column('model', sa.String(100), nullable=False),
        sa.Column('prompt_tokens', sa.Integer, nullable=True),
        sa.Column('completion_tokens', sa.Integer, nullable=True),
        sa.Column('latency_ms', sa.Integer, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='success'),
        sa.Column('error_message', sa.Text, nullable=True),
        sa.Column('request_json', sa.Text, nullable=True),
        sa.Column('response_json', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_ai_call_logs_content_id', 'ai_call_logs', ['content_id'])

    # Append-only audit trail
    op.execute("REVOKE UPDATE, DELETE ON audit_logs FROM PUBLIC;")
    op.execute("GRANT SELECT, INSERT ON audit_logs TO PUBLIC;")


def downgrade() -> None:
    op.drop_table('ai_call_logs')
    op.drop_table('audit_logs')
    op.drop_table('insights_translations')
    op.drop_table('episodes_translations')
    op.drop_table('languages')
    op.drop_table('insights')
    op.drop_table('episode_platforms')
    op.drop_table('episodes')
    op.drop_table('users')
