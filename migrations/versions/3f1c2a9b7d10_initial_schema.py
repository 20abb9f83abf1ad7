"""initial schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9b7d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('display_name', sa.String(length=150), nullable=True),
        sa.Column('photo_url', sa.String(length=512), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('auth_provider', sa.String(length=20), nullable=False, server_default='password'),
        sa.Column('provider_uid', sa.String(length=255), nullable=True),
        sa.Column('username', sa.String(length=20), nullable=True),
        sa.Column('last_username_change_at', sa.DateTime(), nullable=True),
        sa.Column('notifications_authorized', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('push_token', sa.String(length=255), nullable=True),
        sa.Column('last_active', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("auth_provider IN ('password','google','apple')"),
        sa.UniqueConstraint('auth_provider', 'provider_uid', name='uq_users_provider_uid'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_provider_uid', 'users', ['provider_uid'])

    op.create_table(
        'usernames',
        sa.Column('username', sa.String(length=20), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_usernames_user_id', 'usernames', ['user_id'], unique=True)

    op.create_table(
        'quotes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('author', sa.String(length=150), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False),
        sa.UniqueConstraint('text', 'author', name='uq_quotes_text_author'),
    )

    op.create_table(
        'challenges',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('last_check_in_date', sa.Date(), nullable=True),
        sa.Column('streak_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('days_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_timed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_modified', sa.DateTime(), nullable=False),
        sa.CheckConstraint('streak_count >= 0', name='ck_challenges_streak_non_negative'),
        sa.CheckConstraint('days_completed BETWEEN 0 AND 100', name='ck_challenges_days_range'),
    )
    op.create_index('ix_challenges_owner_id', 'challenges', ['owner_id'])
    op.create_index('ix_challenges_is_archived', 'challenges', ['is_archived'])
    op.create_index('idx_challenges_owner_archived', 'challenges', ['owner_id', 'is_archived'])

    op.create_table(
        'check_ins',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('challenge_id', sa.String(length=36), sa.ForeignKey('challenges.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_number', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('prompt_shown', sa.String(length=255), nullable=True),
        sa.Column('photo_url', sa.String(length=512), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.UniqueConstraint('challenge_id', 'date', name='uq_check_ins_challenge_date'),
        sa.CheckConstraint('day_number BETWEEN 1 AND 100', name='ck_check_ins_day_number'),
    )
    op.create_index('ix_check_ins_challenge_id', 'check_ins', ['challenge_id'])
    op.create_index('ix_check_ins_user_id', 'check_ins', ['user_id'])
    op.create_index('idx_check_ins_user_date', 'check_ins', ['user_id', 'date'])

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(length=120), nullable=False),
        sa.Column('original_transaction_id', sa.String(length=64), nullable=False, unique=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('purchased_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('auto_renew', sa.Boolean(), nullable=True),
        sa.Column('canceled_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('active','expired','canceled','pending')"),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    op.create_index('idx_subscription_user_status', 'subscriptions', ['user_id', 'status'])
    op.create_index('idx_subscription_expires_at', 'subscriptions', ['expires_at'])

    op.create_table(
        'reminders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('challenge_id', sa.String(length=36), sa.ForeignKey('challenges.id', ondelete='CASCADE'), nullable=True),
        sa.Column('hour', sa.Integer(), nullable=False),
        sa.Column('minute', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_sent_on', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("kind IN ('daily','streak','challenge')"),
        sa.CheckConstraint('hour BETWEEN 0 AND 23', name='ck_reminders_hour'),
        sa.CheckConstraint('minute BETWEEN 0 AND 59', name='ck_reminders_minute'),
        sa.UniqueConstraint('user_id', 'kind', 'challenge_id', name='uq_reminders_user_kind_challenge'),
    )
    op.create_index('ix_reminders_user_id', 'reminders', ['user_id'])
    op.create_index('idx_reminders_due', 'reminders', ['is_enabled', 'hour', 'minute'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('challenge_id', sa.String(length=36), sa.ForeignKey('challenges.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=True),
        sa.CheckConstraint("type IN ('daily_reminder','streak_risk','challenge_reminder','milestone')"),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('idx_notifications_user_sent_at', 'notifications', ['user_id', 'sent_at'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('reminders')
    op.drop_table('subscriptions')
    op.drop_table('check_ins')
    op.drop_table('challenges')
    op.drop_table('quotes')
    op.drop_table('usernames')
    op.drop_table('users')
