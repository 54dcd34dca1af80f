import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db.models import Count, Max, Q
from django.shortcuts import get_object_or_404
from dfixkart.core.exceptions import ApiError
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.permissions import require_resource_permission, require_permission
from dfixkart.core.responses import api_response, validation_error_response
from dfixkart.core.utils import create_audit_log, parse_bool
from .models import BlogCategory, BlogPost, FAQ, ContactSubmission, Banner
from .serializers import (
    BlogCategorySerializer, BlogPostSerializer, BlogPostListSerializer, FAQSerializer,
    ContactSubmissionSerializer, ContactStatusSerializer, BannerSerializer,
)

logger = logging.getLogger(__name__)

CONTACT_REQUIRED_FIELDS = ('name', 'email', 'message')


def _next_position(model, field):
    current = model.objects.aggregate(top=Max(field))['top']
    return 1 if current is None else current + 1


# ==================== PUBLIC ====================

@api_view(['GET'])
@permission_classes([AllowAny])
def public_blog_list(request):
    """Published posts. Filters: category (slug), search"""
    posts = BlogPost.objects.filter(is_published=True).select_related('category', 'author')

    category = request.query_params.get('category')
    if category:
        posts = posts.filter(category__slug=category)
    search = request.query_params.get('search')
    if search:
        posts = posts.filter(
            Q(title__icontains=search) | Q(excerpt__icontains=search) | Q(content__icontains=search)
        )
    items, pagination = paginate_queryset(posts, request)
    return api_response({
        'posts': BlogPostListSerializer(items, many=True).data,
        'pagination': pagination,
    }, 'Blog posts retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def public_blog_detail(request, slug):
    post = get_object_or_404(BlogPost.objects.select_related('category', 'author'), slug=slug, is_published=True)

    related = BlogPost.objects.filter(is_published=True).exclude(pk=post.pk).select_related('category', 'author')
    if post.category_id:
        related = related.filter(category_id=post.category_id)

    data = BlogPostSerializer(post).data
    data['related_posts'] = BlogPostListSerializer(related[:3], many=True).data
    return api_response(data, 'Blog post retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def public_blog_categories(request):
    categories = BlogCategory.objects.annotate(post_count=Count('posts', filter=Q(posts__is_published=True)))
    return api_response(BlogCategorySerializer(categories, many=True).data, 'Blog categories retrieved successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def public_faqs(request):
    faqs = FAQ.objects.filter(is_active=True)
    category = request.query_params.get('category')
    if category:
        faqs = faqs.filter(category__iexact=category)
    return api_response(FAQSerializer(faqs, many=True).data, 'FAQs retrieved successfully')


@api_view(['POST'])
@permission_classes([AllowAny])
def contact_submit(request):
    if any(not str(request.data.get(field) or '').strip() for field in CONTACT_REQUIRED_FIELDS):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Name, email and message are required')

    serializer = ContactSubmissionSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    submission = serializer.save()
    logger.info(f"Contact submission {submission.id} received from {submission.email}")
    return api_response(ContactSubmissionSerializer(submission).data,
                        'Your message has been sent successfully', status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def public_banners(request):
    banners = Banner.objects.filter(is_published=True)
    return api_response(BannerSerializer(banners, many=True).data, 'Banners retrieved successfully')


# ==================== ADMIN BLOG ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_blog_list_create(request):
    if request.method == 'GET':
        posts = BlogPost.objects.select_related('category', 'author')
        search = request.query_params.get('search')
        if search:
            posts = posts.filter(Q(title__icontains=search) | Q(excerpt__icontains=search))
        is_published = request.query_params.get('is_published')
        if is_published is not None and is_published != '':
            posts = posts.filter(is_published=parse_bool(is_published))
        category = request.query_params.get('category')
        if category:
            posts = posts.filter(category_id=category)

        items, pagination = paginate_queryset(posts, request, default_limit=20)
        return api_response({
            'posts': BlogPostSerializer(items, many=True).data,
            'pagination': pagination,
        }, 'Blog posts retrieved successfully')

    serializer = BlogPostSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    post = serializer.save(author=request.user)
    create_audit_log(request, 'create', 'BlogPost', post.id, object_name=post.title)
    return api_response(BlogPostSerializer(post).data, 'Blog post created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_blog_detail(request, pk):
    post = get_object_or_404(BlogPost.objects.select_related('category', 'author'), pk=pk)

    if request.method == 'GET':
        return api_response(BlogPostSerializer(post).data, 'Blog post retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'BlogPost', post.id, object_name=post.title)
        post.delete()
        return api_response(None, 'Blog post deleted successfully')

    serializer = BlogPostSerializer(post, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    post = serializer.save()
    create_audit_log(request, 'update', 'BlogPost', post.id, object_name=post.title, changes=request.data)
    return api_response(BlogPostSerializer(post).data, 'Blog post updated successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_blog_category_list_create(request):
    if request.method == 'GET':
        categories = BlogCategory.objects.annotate(post_count=Count('posts'))
        return api_response(BlogCategorySerializer(categories, many=True).data, 'Blog categories retrieved successfully')

    serializer = BlogCategorySerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    category = serializer.save()
    create_audit_log(request, 'create', 'BlogCategory', category.id, object_name=category.name)
    return api_response(BlogCategorySerializer(category).data, 'Blog category created successfully',
                        status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_blog_category_detail(request, pk):
    category = get_object_or_404(BlogCategory, pk=pk)

    if request.method == 'GET':
        return api_response(BlogCategorySerializer(category).data, 'Blog category retrieved successfully')

    if request.method == 'DELETE':
        if category.posts.exists():
            raise ApiError(status.HTTP_400_BAD_REQUEST, 'Cannot delete category with associated posts')
        create_audit_log(request, 'delete', 'BlogCategory', category.id, object_name=category.name)
        category.delete()
        return api_response(None, 'Blog category deleted successfully')

    serializer = BlogCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    category = serializer.save()
    create_audit_log(request, 'update', 'BlogCategory', category.id, object_name=category.name, changes=request.data)
    return api_response(BlogCategorySerializer(category).data, 'Blog category updated successfully')


# ==================== ADMIN FAQ ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_faq_list_create(request):
    if request.method == 'GET':
        return api_response(FAQSerializer(FAQ.objects.all(), many=True).data, 'FAQs retrieved successfully')

    serializer = FAQSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    extra = {}
    if 'order' not in serializer.validated_data:
        extra['order'] = _next_position(FAQ, 'order')
    faq = serializer.save(**extra)
    create_audit_log(request, 'create', 'FAQ', faq.id, object_name=faq.question[:100])
    return api_response(FAQSerializer(faq).data, 'FAQ created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_faq_detail(request, pk):
    faq = get_object_or_404(FAQ, pk=pk)

    if request.method == 'GET':
        return api_response(FAQSerializer(faq).data, 'FAQ retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'FAQ', faq.id, object_name=faq.question[:100])
        faq.delete()
        return api_response(None, 'FAQ deleted successfully')

    serializer = FAQSerializer(faq, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    faq = serializer.save()
    create_audit_log(request, 'update', 'FAQ', faq.id, object_name=faq.question[:100], changes=request.data)
    return api_response(FAQSerializer(faq).data, 'FAQ updated successfully')


# ==================== ADMIN BANNERS ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_banner_list_create(request):
    if request.method == 'GET':
        banners = Banner.objects.all()
        search = request.query_params.get('search')
        if search:
            banners = banners.filter(Q(title__icontains=search) | Q(subtitle__icontains=search))
        is_published = request.query_params.get('is_published')
        if is_published is not None and is_published != '':
            banners = banners.filter(is_published=parse_bool(is_published))

        items, pagination = paginate_queryset(banners, request, default_limit=50)
        return api_response({
            'banners': BannerSerializer(items, many=True).data,
            'pagination': pagination,
        }, 'Banners retrieved successfully')

    serializer = BannerSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    extra = {}
    if 'position' not in serializer.validated_data:
        extra['position'] = _next_position(Banner, 'position')
    banner = serializer.save(**extra)
    create_audit_log(request, 'create', 'Banner', banner.id, object_name=banner.title)
    return api_response(BannerSerializer(banner).data, 'Banner created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_banner_detail(request, pk):
    banner = get_object_or_404(Banner, pk=pk)

    if request.method == 'GET':
        return api_response(BannerSerializer(banner).data, 'Banner retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'Banner', banner.id, object_name=banner.title)
        banner.delete()
        return api_response(None, 'Banner deleted successfully')

    serializer = BannerSerializer(banner, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    banner = serializer.save()
    create_audit_log(request, 'update', 'Banner', banner.id, object_name=banner.title, changes=request.data)
    return api_response(BannerSerializer(banner).data, 'Banner updated successfully')


# ==================== ADMIN CONTACT ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('content', 'read')])
def admin_contact_list(request):
    submissions = ContactSubmission.objects.all()
    status_filter = request.query_params.get('status')
    if status_filter:
        submissions = submissions.filter(status=status_filter.upper())
    search = request.query_params.get('search')
    if search:
        submissions = submissions.filter(
            Q(name__icontains=search) | Q(email__icontains=search) | Q(subject__icontains=search)
        )

    items, pagination = paginate_queryset(submissions, request, default_limit=20)
    return api_response({
        'submissions': ContactSubmissionSerializer(items, many=True).data,
        'pagination': pagination,
    }, 'Contact submissions retrieved successfully')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('content')])
def admin_contact_detail(request, pk):
    submission = get_object_or_404(ContactSubmission, pk=pk)

    if request.method == 'GET':
        return api_response(ContactSubmissionSerializer(submission).data, 'Contact submission retrieved successfully')

    if request.method == 'DELETE':
        submission.delete()
        return api_response(None, 'Contact submission deleted successfully')

    serializer = ContactStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    submission.status = serializer.validated_data['status']
    submission.save(update_fields=['status'])
    return api_response(ContactSubmissionSerializer(submission).data, 'Contact submission updated successfully')
