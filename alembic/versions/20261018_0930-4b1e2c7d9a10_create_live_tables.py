"""create_live_tables

Revision ID: 4b1e2c7d9a10
Revises:
Create Date: 2026-10-18 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4b1e2c7d9a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'members',
        sa.Column('id', sa.String(length=64), nullable=False, comment='外部认证服务的用户ID'),
        sa.Column('name', sa.String(length=200), nullable=False, server_default='', comment='展示名'),
        sa.Column('role', sa.String(length=20), nullable=False, comment='participant/organizer/judge'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_members'),
    )

    op.create_table(
        'announcements',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('author_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['members.id'], name='fk_announcements_author_id_members'),
        sa.PrimaryKeyConstraint('id', name='pk_announcements'),
    )
    op.create_index('ix_announcements_author_id', 'announcements', ['author_id'], unique=False)
    op.create_index('ix_announcements_created_at', 'announcements', ['created_at'], unique=False)

    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('asker_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['asker_id'], ['members.id'], name='fk_questions_asker_id_members'),
        sa.PrimaryKeyConstraint('id', name='pk_questions'),
    )
    op.create_index('ix_questions_asker_id', 'questions', ['asker_id'], unique=False)
    op.create_index('ix_questions_created_at', 'questions', ['created_at'], unique=False)

    op.create_table(
        'answers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('answerer_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], name='fk_answers_question_id_questions'),
        sa.ForeignKeyConstraint(['answerer_id'], ['members.id'], name='fk_answers_answerer_id_members'),
        sa.PrimaryKeyConstraint('id', name='pk_answers'),
    )
    op.create_index('ix_answers_question_created', 'answers', ['question_id', 'created_at'], unique=False)

    op.create_table(
        'polls',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default=sa.false(), comment='单调：false -> true'),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['members.id'], name='fk_polls_created_by_members'),
        sa.PrimaryKeyConstraint('id', name='pk_polls'),
    )
    op.create_index('ix_polls_created_at', 'polls', ['created_at'], unique=False)

    op.create_table(
        'poll_options',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('poll_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, comment='选项下标，从0开始'),
        sa.Column('label', sa.String(length=500), nullable=False),
        sa.Column('vote_count', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['poll_id'], ['polls.id'], name='fk_poll_options_poll_id_polls'),
        sa.PrimaryKeyConstraint('id', name='pk_poll_options'),
        sa.UniqueConstraint('poll_id', 'position', name='uq_poll_options_poll_id_position'),
    )

    # (poll_id, user_id) 唯一约束：防重复投票的唯一保证
    op.create_table(
        'poll_votes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('poll_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('option_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['poll_id'], ['polls.id'], name='fk_poll_votes_poll_id_polls'),
        sa.ForeignKeyConstraint(['user_id'], ['members.id'], name='fk_poll_votes_user_id_members'),
        sa.PrimaryKeyConstraint('id', name='pk_poll_votes'),
        sa.UniqueConstraint('poll_id', 'user_id', name='uq_poll_votes_poll_id_user_id'),
    )
    op.create_index('ix_poll_votes_user_id', 'poll_votes', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_poll_votes_user_id', table_name='poll_votes')
    op.drop_table('poll_votes')
    op.drop_table('poll_options')
    op.drop_index('ix_polls_created_at', table_name='polls')
    op.drop_table('polls')
    op.drop_index('ix_answers_question_created', table_name='answers')
    op.drop_table('answers')
    op.drop_index('ix_questions_created_at', table_name='questions')
    op.drop_index('ix_questions_asker_id', table_name='questions')
    op.drop_table('questions')
    op.drop_index('ix_announcements_created_at', table_name='announcements')
    op.drop_index('ix_announcements_author_id', table_name='announcements')
    op.drop_table('announcements')
    op.drop_table('members')
