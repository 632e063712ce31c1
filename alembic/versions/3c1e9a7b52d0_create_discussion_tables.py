"""create_discussion_tables

Revision ID: 3c1e9a7b52d0
Revises:
Create Date: 2026-10-19 10:12:31.204118

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1e9a7b52d0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # 1. users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('uuid', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=True),
        sa.Column('school_name', sa.String(length=200), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_uuid', 'users', ['uuid'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2. slides (+ 집계 컬럼)
    op.create_table(
        'slides',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('difficulty_level', sa.String(length=10), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('thumbnail_url', sa.String(length=500), nullable=True),
        sa.Column('file_url', sa.String(length=500), nullable=True),
        sa.Column('page_count', sa.Integer(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('difficulty_score', sa.Float(), nullable=True),
        sa.Column('rating_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_slides_id', 'slides', ['id'])
    op.create_index('ix_slides_user_id', 'slides', ['user_id'])
    op.create_index('ix_slides_created_at', 'slides', ['created_at'])

    op.create_table(
        'slide_page_stats',
        sa.Column('slide_id', sa.Integer(), sa.ForeignKey('slides.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('page_index', sa.Integer(), primary_key=True),
        sa.Column('rating_average', sa.Float(), nullable=True),
        sa.Column('rating_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_slide_page_stats_slide_id', 'slide_page_stats', ['slide_id'])

    # 3. 노하우 게시글 / 태그
    op.create_table(
        'know_how_articles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_know_how_articles_id', 'know_how_articles', ['id'])
    op.create_index('ix_know_how_articles_user_id', 'know_how_articles', ['user_id'])
    op.create_index('ix_know_how_articles_created_at', 'know_how_articles', ['created_at'])

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=50), nullable=False, unique=True),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='keyword'),
    )
    op.create_index('ix_tags_id', 'tags', ['id'])

    op.create_table(
        'know_how_tags',
        sa.Column('article_id', sa.Integer(), sa.ForeignKey('know_how_articles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.Integer(), sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )

    # 4. 댓글 / 답글 (부모는 슬라이드 또는 게시글 중 하나)
    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('slide_id', sa.Integer(), sa.ForeignKey('slides.id', ondelete='CASCADE'), nullable=True),
        sa.Column('article_id', sa.Integer(), sa.ForeignKey('know_how_articles.id', ondelete='CASCADE'), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False, server_default='comment'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint(
            "(slide_id IS NOT NULL AND article_id IS NULL) OR (slide_id IS NULL AND article_id IS NOT NULL)",
            name='ck_comments_single_parent',
        ),
        sa.CheckConstraint("kind IN ('comment', 'proposal')", name='ck_comments_kind'),
    )
    op.create_index('ix_comments_id', 'comments', ['id'])
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])
    op.create_index('ix_comments_created_at', 'comments', ['created_at'])
    op.create_index('ix_comments_slide_created', 'comments', ['slide_id', 'created_at'])
    op.create_index('ix_comments_article_created', 'comments', ['article_id', 'created_at'])

    op.create_table(
        'replies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('comment_id', sa.Integer(), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_replies_id', 'replies', ['id'])
    op.create_index('ix_replies_comment_id', 'replies', ['comment_id'])
    op.create_index('ix_replies_user_id', 'replies', ['user_id'])
    op.create_index('ix_replies_created_at', 'replies', ['created_at'])

    # 5. 평가 (rater, kind, slide, page 조합당 한 행)
    op.create_table(
        'slide_ratings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rater_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('slide_id', sa.Integer(), sa.ForeignKey('slides.id', ondelete='CASCADE'), nullable=False),
        sa.Column('target_kind', sa.String(length=10), nullable=False),
        sa.Column('page_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("target_kind IN ('slide', 'page')", name='ck_slide_ratings_target_kind'),
    )
    op.create_index('ix_slide_ratings_id', 'slide_ratings', ['id'])
    op.create_index(
        'uq_slide_ratings_rater_target',
        'slide_ratings',
        ['rater_id', 'target_kind', 'slide_id', 'page_index'],
        unique=True,
    )
    op.create_index('ix_slide_ratings_target', 'slide_ratings', ['slide_id', 'target_kind', 'page_index'])

    # 6. 리액션 (사용자당 게시글 하나)
    op.create_table(
        'know_how_reactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('article_id', sa.Integer(), sa.ForeignKey('know_how_articles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reaction_type', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_know_how_reactions_id', 'know_how_reactions', ['id'])
    op.create_index('uq_know_how_reactions_user_article', 'know_how_reactions', ['user_id', 'article_id'], unique=True)
    op.create_index('ix_know_how_reactions_article', 'know_how_reactions', ['article_id'])


def downgrade() -> None:
    op.drop_table('know_how_reactions')
    op.drop_table('slide_ratings')
    op.drop_table('replies')
    op.drop_table('comments')
    op.drop_table('know_how_tags')
    op.drop_table('tags')
    op.drop_table('know_how_articles')
    op.drop_table('slide_page_stats')
    op.drop_table('slides')
    op.drop_table('users')
