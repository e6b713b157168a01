"""ORM row -> export record serializers.

Records use the same camelCase field names as the admin API, with declared
relations inlined as small reference objects. User serialization is the only
place user rows become records, so secrets are dropped here for every caller.
"""

from db.models import (
    AdminNotifications,
    BlogPosts,
    Categories,
    Comments,
    OrderItems,
    Orders,
    Products,
    Users,
)
from kureno.services._helpers import load_json, load_json_list
from kureno.services._types import RecordDict, UserRefDict


def _user_ref(user: Users | None) -> UserRefDict | None:
    if user is None:
        return None
    return UserRefDict(id=user.id, name=user.name, email=user.email)


def category_record(c: Categories) -> RecordDict:
    return {
        "id": c.id,
        "name": c.name,
        "slug": c.slug,
        "description": c.description,
        "createdAt": c.created_at,
        "updatedAt": c.updated_at,
    }


def product_record(p: Products) -> RecordDict:
    return {
        "id": p.id,
        "sku": p.sku,
        "name": p.name,
        "description": p.description,
        "price": p.price,
        "images": load_json_list(p.images),
        "category": {"id": p.category.id, "name": p.category.name} if p.category else None,
        "stock": p.stock,
        "featured": bool(p.featured),
        "createdAt": p.created_at,
        "updatedAt": p.updated_at,
    }


def user_record(u: Users) -> RecordDict:
    # password_hash, reset_password_token and reset_password_expires never leave the DB
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "role": u.role,
        "permissions": load_json(u.permissions) or {},
        "phone": u.phone,
        "bio": u.bio,
        "address": load_json(u.address),
        "preferences": load_json(u.preferences) or {},
        "lastLogin": u.last_login,
        "isActive": bool(u.is_active),
        "createdAt": u.created_at,
        "updatedAt": u.updated_at,
    }


def blog_post_record(b: BlogPosts) -> RecordDict:
    return {
        "id": b.id,
        "title": b.title,
        "slug": b.slug,
        "content": b.content,
        "excerpt": b.excerpt,
        "author": _user_ref(b.author),
        "coverImage": b.cover_image,
        "tags": load_json_list(b.tags),
        "published": bool(b.published),
        "publishedAt": b.published_at,
        "views": b.views,
        "likes": b.likes,
        "createdAt": b.created_at,
        "updatedAt": b.updated_at,
    }


def _order_item(item: OrderItems) -> RecordDict:
    product = item.product
    return {
        "product": (
            {"id": product.id, "name": product.name, "price": product.price}
            if product
            else None
        ),
        "name": item.name,
        "price": item.price,
        "quantity": item.quantity,
        "image": item.image,
    }


def order_record(o: Orders) -> RecordDict:
    return {
        "id": o.id,
        "user": _user_ref(o.user),
        "items": [_order_item(i) for i in o.items],
        "subtotal": o.subtotal,
        "shipping": o.shipping,
        "total": o.total,
        "status": o.status,
        "shippingAddress": load_json(o.shipping_address) or {},
        "paymentMethod": o.payment_method,
        "paymentStatus": o.payment_status,
        "createdAt": o.created_at,
        "updatedAt": o.updated_at,
    }


def comment_record(c: Comments) -> RecordDict:
    return {
        "id": c.id,
        "content": c.content,
        "author": _user_ref(c.author),
        "post": {"id": c.post.id, "title": c.post.title} if c.post else None,
        "parentId": c.parent_id,
        "likes": c.likes,
        "createdAt": c.created_at,
        "updatedAt": c.updated_at,
    }


def notification_record(n: AdminNotifications) -> RecordDict:
    related = (
        {"type": n.related_entity_type, "id": n.related_entity_id}
        if n.related_entity_type
        else None
    )
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "category": n.category,
        "priority": n.priority,
        "isRead": bool(n.is_read),
        "userId": n.user_id,
        "relatedEntity": related,
        "actionUrl": n.action_url,
        "expiresAt": n.expires_at,
        "readAt": n.read_at,
        "createdAt": n.created_at,
        "updatedAt": n.updated_at,
    }
