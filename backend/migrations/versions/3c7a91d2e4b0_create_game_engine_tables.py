"""create game, game_participant and submission

Revision ID: 3c7a91d2e4b0
Revises:
Create Date: 2026-10-19 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7a91d2e4b0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('organizer_id', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('join_code', sa.String(length=16), nullable=True),
        sa.Column('config_json', sa.Text(), nullable=True),
        sa.Column('settings_json', sa.Text(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('paused_at', sa.DateTime(), nullable=True),
        sa.Column('resumed_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_organizer_id', 'game', ['organizer_id'], unique=False)
    op.create_index('ix_game_join_code', 'game', ['join_code'], unique=True)

    op.create_table(
        'game_participant',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'user_id', name='uq_game_participant'),
    )
    op.create_index('ix_game_participant_game_id', 'game_participant', ['game_id'], unique=False)
    op.create_index('ix_game_participant_user_id', 'game_participant', ['user_id'], unique=False)

    op.create_table(
        'submission',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('exclusive_key', sa.String(length=128), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('media_json', sa.Text(), nullable=True),
        sa.Column('answer_json', sa.Text(), nullable=True),
        sa.Column('item_id', sa.String(length=64), nullable=True),
        sa.Column('selected_item_id', sa.String(length=64), nullable=True),
        sa.Column('time_spent_json', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=True),
        sa.Column('computed_points', sa.Integer(), nullable=True),
        sa.Column('points_awarded', sa.Integer(), nullable=False),
        sa.Column('bonus_points', sa.Integer(), nullable=False),
        sa.Column('bonus_reason', sa.String(length=200), nullable=True),
        sa.Column('bonus_history_json', sa.Text(), nullable=True),
        sa.Column('review_notes', sa.String(length=500), nullable=True),
        sa.Column('rejection_reason', sa.String(length=500), nullable=True),
        sa.Column('reviewed_by', sa.String(length=64), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('is_flagged', sa.Boolean(), nullable=False),
        sa.Column('flag_reason', sa.String(length=500), nullable=True),
        sa.Column('flagged_by', sa.String(length=64), nullable=True),
        sa.Column('flagged_at', sa.DateTime(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('exclusive_key'),
    )
    op.create_index('ix_submission_game_id', 'submission', ['game_id'], unique=False)
    op.create_index('ix_submission_user_id', 'submission', ['user_id'], unique=False)

def downgrade():
    op.drop_index('ix_submission_user_id', table_name='submission')
    op.drop_index('ix_submission_game_id', table_name='submission')
    op.drop_table('submission')
    op.drop_index('ix_game_participant_user_id', table_name='game_participant')
    op.drop_index('ix_game_participant_game_id', table_name='game_participant')
    op.drop_table('game_participant')
    op.drop_index('ix_game_join_code', table_name='game')
    op.drop_index('ix_game_organizer_id', table_name='game')
    op.drop_table('game')
