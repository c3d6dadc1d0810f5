"""Create writing assistant tables

Revision ID: create_assistant_tables
Revises:
Create Date: 2026-10-18

Adds tables for:
- user_style_profiles (one derived style profile per user)
- account_contexts (optional brand overlay per account)
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_assistant_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user_style_profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('social_id', sa.BigInteger, nullable=False),
        sa.Column('tone', sa.String(20), nullable=False, server_default='casual'),
        sa.Column('avg_length', sa.Integer, nullable=False, server_default='150'),
        sa.Column('common_phrases', sa.JSON, nullable=False),
        sa.Column('topics', sa.JSON, nullable=False),
        sa.Column('emoji_usage', sa.String(10), nullable=False, server_default='light'),
        sa.Column('language_preference', sa.String(10), nullable=False, server_default='en'),
        sa.Column('sample_posts', sa.JSON, nullable=False),
        sa.Column('engagement_insights', sa.JSON, nullable=False),
        sa.Column('analyzed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_index('ix_user_style_profiles_user_id', 'user_style_profiles', ['user_id'], unique=True)

    op.create_table(
        'account_contexts',
        sa.Column('account_id', sa.String(64), primary_key=True),
        sa.Column('brand_voice', sa.Text, nullable=True),
        sa.Column('bio', sa.Text, nullable=True),
        sa.Column('expertise', sa.JSON, nullable=False),
        sa.Column('always_do', sa.JSON, nullable=False),
        sa.Column('never_do', sa.JSON, nullable=False),
        sa.Column('hashtags', sa.JSON, nullable=False),
        sa.Column('default_tone', sa.String(50), nullable=True),
        sa.Column('default_language', sa.String(10), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    )


def downgrade():
    op.drop_table('account_contexts')
    op.drop_index('ix_user_style_profiles_user_id', table_name='user_style_profiles')
    op.drop_table('user_style_profiles')
