"""create bugs table

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c9a7d2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'bugs',
        sa.Column('id', sa.String(length=25), nullable=False, comment='缺陷ID，格式：B + 雪花算法ID'),
        sa.Column('title', sa.String(length=200), nullable=False, comment='缺陷标题'),
        sa.Column('description', sa.Text(), nullable=False, comment='缺陷描述'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='缺陷状态'),
        sa.Column('priority', sa.String(length=20), nullable=False, comment='缺陷优先级'),
        sa.Column('reporter', sa.String(length=100), nullable=False, comment='报告人'),
        sa.Column('assigned_to', sa.String(length=100), nullable=False, comment='负责人'),
        sa.Column('tags', sa.JSON(), nullable=False, comment='缺陷标签'),
        sa.Column('steps_to_reproduce', sa.Text(), nullable=True, comment='复现步骤'),
        sa.Column('expected_behavior', sa.Text(), nullable=True, comment='预期结果'),
        sa.Column('actual_behavior', sa.Text(), nullable=True, comment='实际结果'),
        sa.Column('environment', sa.String(length=200), nullable=True, comment='缺陷所属环境'),
        sa.Column('attachments', sa.JSON(), nullable=False, comment='附件地址'),
        sa.Column('created_at', sa.DateTime(), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_bugs_status', 'bugs', ['status'], unique=False)
    op.create_index('ix_bugs_priority', 'bugs', ['priority'], unique=False)
    op.create_index('ix_bugs_created_at', 'bugs', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_bugs_created_at', table_name='bugs')
    op.drop_index('ix_bugs_priority', table_name='bugs')
    op.drop_index('ix_bugs_status', table_name='bugs')
    op.drop_table('bugs')
