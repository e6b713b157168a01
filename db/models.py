"""SQLAlchemy ORM models for the store.

JSON sub-documents and string arrays are stored as JSON TEXT columns and
decoded with ``kureno.services._helpers.load_json`` / ``load_json_list``.
Timestamps are ISO-8601 UTC strings.
"""

from uuid import uuid4

from sqlalchemy import ForeignKey, MetaData, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


def generate_uuid() -> str:
    return str(uuid4())


class Categories(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column()
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)


class Products(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    sku: Mapped[str] = mapped_column(nullable=False, unique=True)
    name: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(nullable=False, default="")
    price: Mapped[float] = mapped_column(nullable=False)
    images: Mapped[str] = mapped_column(nullable=False, default="[]")
    category_id: Mapped[str] = mapped_column(ForeignKey("categories.id"), nullable=False)
    stock: Mapped[int] = mapped_column(nullable=False, default=0)
    featured: Mapped[bool] = mapped_column(nullable=False, default=False)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)

    category = relationship("Categories", lazy="joined")


class Users(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(nullable=False)
    email: Mapped[str] = mapped_column(nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column()
    role: Mapped[str] = mapped_column(nullable=False, default="user")
    permissions: Mapped[str] = mapped_column(nullable=False, default="{}")
    phone: Mapped[str | None] = mapped_column()
    bio: Mapped[str | None] = mapped_column()
    address: Mapped[str | None] = mapped_column()
    preferences: Mapped[str] = mapped_column(nullable=False, default="{}")
    last_login: Mapped[str | None] = mapped_column()
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    reset_password_token: Mapped[str | None] = mapped_column()
    reset_password_expires: Mapped[str | None] = mapped_column()
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)


class BlogPosts(Base):
    __tablename__ = "blog_posts"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(nullable=False)
    slug: Mapped[str] = mapped_column(nullable=False, unique=True)
    content: Mapped[str] = mapped_column(nullable=False)
    excerpt: Mapped[str] = mapped_column(nullable=False, default="")
    author_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    cover_image: Mapped[str] = mapped_column(nullable=False, default="")
    tags: Mapped[str] = mapped_column(nullable=False, default="[]")
    published: Mapped[bool] = mapped_column(nullable=False, default=False)
    published_at: Mapped[str | None] = mapped_column()
    views: Mapped[int] = mapped_column(nullable=False, default=0)
    likes: Mapped[int] = mapped_column(nullable=False, default=0)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)

    author = relationship("Users", lazy="joined")


class Orders(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    subtotal: Mapped[float] = mapped_column(nullable=False)
    shipping: Mapped[float] = mapped_column(nullable=False)
    total: Mapped[float] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(nullable=False, default="pending")
    shipping_address: Mapped[str] = mapped_column(nullable=False, default="{}")
    payment_method: Mapped[str] = mapped_column(nullable=False)
    payment_status: Mapped[str] = mapped_column(nullable=False, default="pending")
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)

    user = relationship("Users", lazy="joined")
    items = relationship(
        "OrderItems",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItems.position",
        lazy="selectin",
    )


class OrderItems(Base):
    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    product_id: Mapped[str | None] = mapped_column(ForeignKey("products.id"))
    name: Mapped[str] = mapped_column(nullable=False)
    price: Mapped[float] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    image: Mapped[str] = mapped_column(nullable=False, default="")

    order = relationship("Orders", back_populates="items")
    product = relationship("Products", lazy="joined")


class Comments(Base):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    content: Mapped[str] = mapped_column(nullable=False)
    author_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    post_id: Mapped[str] = mapped_column(ForeignKey("blog_posts.id"), nullable=False)
    parent_id: Mapped[str | None] = mapped_column()
    likes: Mapped[int] = mapped_column(nullable=False, default=0)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)

    author = relationship("Users", lazy="joined")
    post = relationship("BlogPosts", lazy="joined")


class Reviews(Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    product_id: Mapped[str] = mapped_column(nullable=False)
    user_id: Mapped[str] = mapped_column(nullable=False)
    user_name: Mapped[str] = mapped_column(nullable=False)
    user_email: Mapped[str] = mapped_column(nullable=False)
    rating: Mapped[int] = mapped_column(nullable=False)
    title: Mapped[str] = mapped_column(nullable=False)
    comment: Mapped[str] = mapped_column(nullable=False)
    verified: Mapped[bool] = mapped_column(nullable=False, default=False)
    helpful: Mapped[int] = mapped_column(nullable=False, default=0)
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "product_id"),)


class AdminNotifications(Base):
    __tablename__ = "admin_notifications"

    id: Mapped[str] = mapped_column(primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(nullable=False)
    message: Mapped[str] = mapped_column(nullable=False)
    type: Mapped[str] = mapped_column(nullable=False, default="info")
    category: Mapped[str] = mapped_column(nullable=False)
    priority: Mapped[str] = mapped_column(nullable=False, default="medium")
    is_read: Mapped[bool] = mapped_column(nullable=False, default=False)
    user_id: Mapped[str | None] = mapped_column()
    related_entity_type: Mapped[str | None] = mapped_column()
    related_entity_id: Mapped[str | None] = mapped_column()
    action_url: Mapped[str | None] = mapped_column()
    expires_at: Mapped[str | None] = mapped_column()
    read_at: Mapped[str | None] = mapped_column()
    created_at: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[str] = mapped_column(nullable=False)
