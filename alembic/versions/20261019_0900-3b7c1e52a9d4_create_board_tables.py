"""create_board_tables

Revision ID: 3b7c1e52a9d4
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b7c1e52a9d4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'subject',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='主键ID'),
        sa.Column('title', sa.Text(), nullable=False, comment='标题'),
        sa.Column('enabled', sa.Boolean(), server_default=sa.text('true'), nullable=False, comment='是否启用'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_subject')),
    )

    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='主键ID'),
        sa.Column('question', sa.Text(), nullable=False, comment='问题内容'),
        sa.Column('subject_id', sa.Integer(), nullable=False, comment='所属主题'),
        sa.Column('likes', sa.Integer(), server_default=sa.text('0'), nullable=False, comment='点赞数'),
        sa.ForeignKeyConstraint(['subject_id'], ['subject.id'], name=op.f('fk_question_subject_id_subject')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_question')),
    )
    op.create_index(op.f('ix_question_subject_id'), 'question', ['subject_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_question_subject_id'), table_name='question')
    op.drop_table('question')
    op.drop_table('subject')
