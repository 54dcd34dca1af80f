"""
Tests for the blog, FAQs, banners and contact form
"""
from django.test import TestCase
from rest_framework import status
from dfixkart.core.models import AuditLog
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.content.models import BlogCategory, BlogPost, FAQ, ContactSubmission, Banner


class PublicContentAPITests(TestCase):
    """Storefront content endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.category = BlogCategory.objects.create(name='Repair Guides')
        self.post = BlogPost.objects.create(title='Fixing a Leaky Tap', content='Step one...',
                                            category=self.category, is_published=True)
        self.draft = BlogPost.objects.create(title='Draft Post', content='Not yet', category=self.category)

    def test_slugs_and_publish_date(self):
        self.assertEqual(self.category.slug, 'repair-guides')
        self.assertEqual(self.post.slug, 'fixing-a-leaky-tap')
        self.assertIsNotNone(self.post.published_at)
        self.assertIsNone(self.draft.published_at)

    def test_blog_list_only_published(self):
        response = self.client.get('/api/v1/content/blog/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['slug'] for p in response.data['data']['posts']], ['fixing-a-leaky-tap'])

        response = self.client.get('/api/v1/content/blog/', {'search': 'tap', 'category': 'repair-guides'})
        self.assertEqual(response.data['data']['pagination']['total'], 1)

    def test_blog_detail_with_related(self):
        BlogPost.objects.create(title='Unclogging Drains', content='...', category=self.category, is_published=True)
        response = self.client.get(f'/api/v1/content/blog/{self.post.slug}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['title'] for p in response.data['data']['related_posts']], ['Unclogging Drains'])

    def test_draft_detail_is_404(self):
        response = self.client.get(f'/api/v1/content/blog/{self.draft.slug}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_categories_count_published_posts(self):
        response = self.client.get('/api/v1/content/blog-categories/')
        self.assertEqual(response.data['data'][0]['post_count'], 1)

    def test_faqs_and_banners(self):
        FAQ.objects.create(question='Do you ship to Goa?', answer='Yes', category='Shipping')
        FAQ.objects.create(question='Hidden', answer='No', is_active=False)
        Banner.objects.create(title='Monsoon Sale', image='https://cdn.example.com/b.jpg')
        Banner.objects.create(title='Old', image='https://cdn.example.com/o.jpg', is_published=False)

        response = self.client.get('/api/v1/content/faqs/', {'category': 'shipping'})
        self.assertEqual([f['question'] for f in response.data['data']], ['Do you ship to Goa?'])
        response = self.client.get('/api/v1/public/banners/')
        self.assertEqual([b['title'] for b in response.data['data']], ['Monsoon Sale'])

    def test_contact_submit(self):
        response = self.client.post('/api/v1/content/contact/', {
            'name': 'Kiran',
            'email': 'kiran@example.com',
            'message': 'Where is my order?',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(ContactSubmission.objects.get().status, ContactSubmission.STATUS_NEW)

    def test_contact_missing_fields(self):
        response = self.client.post('/api/v1/content/contact/', {'name': 'Kiran', 'email': 'kiran@example.com'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Name, email and message are required')


class AdminContentAPITests(TestCase):
    """Admin content management"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(permissions=['content:*'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_post_sets_author(self):
        response = self.client.post('/api/v1/admin/blog/', {
            'title': 'Choosing Wall Plugs',
            'content': 'Pick the right plug',
            'is_published': True,
            'tags': ['walls', 'diy'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        post = BlogPost.objects.get()
        self.assertEqual(post.author, self.admin)
        self.assertEqual(post.slug, 'choosing-wall-plugs')
        self.assertIsNotNone(post.published_at)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='BlogPost').exists())

    def test_duplicate_title_rejected(self):
        BlogPost.objects.create(title='Same Title', content='x')
        response = self.client.post('/api/v1/admin/blog/', {'title': 'Same Title', 'content': 'y'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('title', response.data['errors'])

    def test_unpublish_clears_date(self):
        post = BlogPost.objects.create(title='Live', content='x', is_published=True)
        response = self.client.patch(f'/api/v1/admin/blog/{post.id}/', {'is_published': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        post.refresh_from_db()
        self.assertIsNone(post.published_at)

    def test_category_with_posts_cannot_be_deleted(self):
        category = BlogCategory.objects.create(name='News')
        BlogPost.objects.create(title='Store opening', content='x', category=category)
        response = self.client.delete(f'/api/v1/admin/blog-categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cannot delete category with associated posts')

    def test_faq_order_auto_increments(self):
        FAQ.objects.create(question='First?', answer='a', order=4)
        response = self.client.post('/api/v1/admin/faqs/', {'question': 'Next?', 'answer': 'b'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['order'], 5)

    def test_banner_position_auto_increments(self):
        response = self.client.post('/api/v1/admin/banners/', {
            'title': 'Hero',
            'image': 'https://cdn.example.com/hero.jpg',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['position'], 1)

        response = self.client.get('/api/v1/admin/banners/')
        self.assertEqual(response.data['data']['pagination']['total'], 1)

    def test_contact_status(self):
        submission = ContactSubmission.objects.create(name='A', email='a@example.com', message='Hi')
        response = self.client.patch(f'/api/v1/admin/contact-submissions/{submission.id}/', {'status': 'READ'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        submission.refresh_from_db()
        self.assertEqual(submission.status, ContactSubmission.STATUS_READ)

        response = self.client.get('/api/v1/admin/contact-submissions/', {'status': 'read'})
        self.assertEqual(response.data['data']['pagination']['total'], 1)

    def test_requires_content_permission(self):
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['orders:read']))
        response = self.client.get('/api/v1/admin/blog/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
