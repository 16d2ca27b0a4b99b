"""create_squares_tables

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-01-12 18:04:11.209316

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('admin', 'user', name='userrole')
game_status = sa.Enum('SELLING', 'NUMBERS_ASSIGNED', 'LIVE', 'FINAL', name='gamestatus')
box_status = sa.Enum('AVAILABLE', 'RESERVED', 'CONFIRMED', name='boxstatus')


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_profiles_id'), 'profiles', ['id'], unique=False)

    op.create_table(
        'games',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('season_year', sa.Integer(), nullable=True),
        sa.Column('home_team', sa.String(), nullable=False),
        sa.Column('home_abbreviation', sa.String(), nullable=False),
        sa.Column('home_color', sa.String(), nullable=True),
        sa.Column('home_alt_color', sa.String(), nullable=True),
        sa.Column('away_team', sa.String(), nullable=False),
        sa.Column('away_abbreviation', sa.String(), nullable=False),
        sa.Column('away_color', sa.String(), nullable=True),
        sa.Column('away_alt_color', sa.String(), nullable=True),
        sa.Column('espn_game_id', sa.String(), nullable=True),
        sa.Column('kickoff_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('price_per_box', sa.Integer(), nullable=False),
        sa.Column('price_10_boxes', sa.Integer(), nullable=False),
        sa.Column('price_20_boxes', sa.Integer(), nullable=False),
        sa.Column('payout_q1', sa.Integer(), nullable=False),
        sa.Column('payout_q2', sa.Integer(), nullable=False),
        sa.Column('payout_q3', sa.Integer(), nullable=False),
        sa.Column('payout_q4', sa.Integer(), nullable=False),
        sa.Column('numbers_assigned', sa.Boolean(), nullable=False),
        sa.Column('row_numbers', sa.JSON(), nullable=True),
        sa.Column('col_numbers', sa.JSON(), nullable=True),
        sa.Column('status', game_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_games_id'), 'games', ['id'], unique=False)

    op.create_table(
        'boxes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('row_index', sa.Integer(), nullable=False),
        sa.Column('col_index', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('status', box_status, nullable=False),
        sa.Column('reserved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_free', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['games.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'row_index', 'col_index', name='unique_game_cell')
    )
    op.create_index(op.f('ix_boxes_id'), 'boxes', ['id'], unique=False)
    op.create_index(op.f('ix_boxes_game_id'), 'boxes', ['game_id'], unique=False)
    op.create_index(op.f('ix_boxes_user_id'), 'boxes', ['user_id'], unique=False)
    op.create_index(op.f('ix_boxes_status'), 'boxes', ['status'], unique=False)

    op.create_table(
        'quarter_results',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('quarter', sa.Integer(), nullable=False),
        sa.Column('home_score', sa.Integer(), nullable=False),
        sa.Column('away_score', sa.Integer(), nullable=False),
        sa.Column('home_last_digit', sa.Integer(), nullable=False),
        sa.Column('away_last_digit', sa.Integer(), nullable=False),
        sa.Column('winning_box_id', sa.Integer(), nullable=True),
        sa.Column('winning_user_id', sa.String(), nullable=True),
        sa.Column('payout_amount', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['game_id'], ['games.id'], ),
        sa.ForeignKeyConstraint(['winning_box_id'], ['boxes.id'], ),
        sa.ForeignKeyConstraint(['winning_user_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'quarter', name='unique_game_quarter')
    )
    op.create_index(op.f('ix_quarter_results_id'), 'quarter_results', ['id'], unique=False)
    op.create_index(op.f('ix_quarter_results_game_id'), 'quarter_results', ['game_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_quarter_results_game_id'), table_name='quarter_results')
    op.drop_index(op.f('ix_quarter_results_id'), table_name='quarter_results')
    op.drop_table('quarter_results')
    op.drop_index(op.f('ix_boxes_status'), table_name='boxes')
    op.drop_index(op.f('ix_boxes_user_id'), table_name='boxes')
    op.drop_index(op.f('ix_boxes_game_id'), table_name='boxes')
    op.drop_index(op.f('ix_boxes_id'), table_name='boxes')
    op.drop_table('boxes')
    op.drop_index(op.f('ix_games_id'), table_name='games')
    op.drop_table('games')
    op.drop_index(op.f('ix_profiles_id'), table_name='profiles')
    op.drop_table('profiles')
    box_status.drop(op.get_bind(), checkfirst=True)
    game_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
