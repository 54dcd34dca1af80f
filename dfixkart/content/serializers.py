from rest_framework import serializers
from .models import BlogCategory, BlogPost, FAQ, ContactSubmission, Banner


class BlogCategorySerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=220)
    post_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = BlogCategory
        fields = ['id', 'name', 'slug', 'description', 'post_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_slug(self, value):
        if not value:
            return value
        qs = BlogCategory.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A category with this slug already exists")
        return value


class BlogPostSerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=270)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    category_slug = serializers.CharField(source='category.slug', read_only=True, default=None)
    author_name = serializers.SerializerMethodField()
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = BlogPost
        fields = [
            'id', 'title', 'slug', 'excerpt', 'content', 'cover_image', 'category', 'category_name', 'category_slug',
            'author', 'author_name', 'is_published', 'published_at', 'tags', 'created_at', 'updated_at'
        ]
        read_only_fields = ['author', 'published_at', 'created_at', 'updated_at']

    def get_author_name(self, obj):
        if obj.author is None:
            return None
        return obj.author.get_full_name() or obj.author.username

    def validate_title(self, value):
        qs = BlogPost.objects.filter(title__iexact=value.strip())
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A blog post with this title already exists")
        return value.strip()

    def validate_slug(self, value):
        if not value:
            return value
        qs = BlogPost.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A blog post with this slug already exists")
        return value

    def update(self, instance, validated_data):
        # Unpublishing clears the date so a later publish stamps a fresh one
        if validated_data.get('is_published') is False:
            instance.published_at = None
        return super().update(instance, validated_data)


class BlogPostListSerializer(BlogPostSerializer):
    class Meta(BlogPostSerializer.Meta):
        fields = [
            'id', 'title', 'slug', 'excerpt', 'cover_image', 'category_name', 'category_slug', 'author_name',
            'published_at', 'tags'
        ]


class FAQSerializer(serializers.ModelSerializer):
    class Meta:
        model = FAQ
        fields = ['id', 'question', 'answer', 'category', 'order', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {'order': {'required': False}}


class ContactSubmissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContactSubmission
        fields = ['id', 'name', 'email', 'phone', 'subject', 'message', 'status', 'created_at']
        read_only_fields = ['status', 'created_at']


class ContactStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ContactSubmission.STATUS_CHOICES)


class BannerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Banner
        fields = ['id', 'title', 'subtitle', 'image', 'mobile_image', 'link', 'position', 'is_published',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {'position': {'required': False}}
