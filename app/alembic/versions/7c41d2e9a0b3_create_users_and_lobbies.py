"""create_users_and_lobbies

Revision ID: 7c41d2e9a0b3
Revises: 
Create Date: 2025-11-14 10:12:48.512337

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c41d2e9a0b3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users (fastapi-users columns plus nickname and bio)
    op.create_table(
        'registered_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('hashed_password', sa.String(length=1024), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_superuser', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('nickname', sa.String(length=255), nullable=False),
        sa.Column('bio', sa.String(length=1000), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_registered_users_email', 'registered_users', ['email'], unique=True)
    op.create_index('ix_registered_users_nickname', 'registered_users', ['nickname'], unique=True)

    # Lobbies; deleting the creator deletes their lobbies
    op.create_table(
        'lobbies',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('sport_name', sa.String(length=100), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('location_lat', sa.Float(), nullable=True),
        sa.Column('location_lng', sa.Float(), nullable=True),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('max_players', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['creator_id'], ['registered_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_lobbies_creator_id', 'lobbies', ['creator_id'])
    op.create_index('ix_lobbies_sport_name', 'lobbies', ['sport_name'])
    op.create_index('ix_lobbies_date', 'lobbies', ['date'])
    op.create_index('ix_lobbies_created_at', 'lobbies', ['created_at'])

    # Participants; one row per (lobby, user)
    op.create_table(
        'lobby_participants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lobby_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['lobby_id'], ['lobbies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['registered_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('lobby_id', 'user_id', name='uq_lobby_participants_lobby_user')
    )
    op.create_index('ix_lobby_participants_id', 'lobby_participants', ['id'])
    op.create_index('ix_lobby_participants_lobby_id', 'lobby_participants', ['lobby_id'])
    op.create_index('ix_lobby_participants_user_id', 'lobby_participants', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_lobby_participants_user_id', 'lobby_participants')
    op.drop_index('ix_lobby_participants_lobby_id', 'lobby_participants')
    op.drop_index('ix_lobby_participants_id', 'lobby_participants')
    op.drop_table('lobby_participants')

    op.drop_index('ix_lobbies_created_at', 'lobbies')
    op.drop_index('ix_lobbies_date', 'lobbies')
    op.drop_index('ix_lobbies_sport_name', 'lobbies')
    op.drop_index('ix_lobbies_creator_id', 'lobbies')
    op.drop_table('lobbies')

    op.drop_index('ix_registered_users_nickname', 'registered_users')
    op.drop_index('ix_registered_users_email', 'registered_users')
    op.drop_table('registered_users')
