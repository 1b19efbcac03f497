from django.urls import path

from .views import *


urlpatterns = [
    path('auth/register/', RegisterView.as_view(), name='register'),
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/profile/<int:pk>/', ProfileView.as_view(), name='profile'),
    path('auth/teacher-profile/<int:pk>/', TeacherProfileView.as_view(), name='teacher-profile'),
    path('auth/student-profile/<int:pk>/', StudentProfileView.as_view(), name='student-profile'),
    path('auth/teachers/', TeacherDirectoryView.as_view(), name='teacher-directory'),
    path('auth/students/', StudentDirectoryView.as_view(), name='student-directory'),

    path('courses/', CourseCollectionView.as_view(), name='course-list'),
    path('courses/search/tags/', TagSearchView.as_view(), name='course-search-tags'),
    path('courses/search/text/', TextSearchView.as_view(), name='course-search-text'),
    path('courses/search/advanced/', AdvancedSearchView.as_view(), name='course-search-advanced'),
    path('courses/search/suggestions/', SuggestionsView.as_view(), name='course-search-suggestions'),
    path('courses/tags/all/', AllTagsView.as_view(), name='course-tags-all'),
    path('courses/tags/popular/', PopularTagsView.as_view(), name='course-tags-popular'),
    path('courses/teacher/<int:teacher_pk>/', TeacherCoursesView.as_view(), name='teacher-courses'),
    path('courses/student/<int:student_pk>/', StudentCoursesView.as_view(), name='student-courses'),
    path('courses/<int:pk>/', CourseDetailView.as_view(), name='course-detail'),
    path('courses/<int:pk>/publish/', CoursePublishView.as_view(), name='course-publish'),
    path('courses/<int:pk>/enroll/', CourseEnrollView.as_view(), name='course-enroll'),
    path('courses/<int:pk>/review/', CourseReviewView.as_view(), name='course-review'),
    path('courses/<int:pk>/progress/', CourseProgressView.as_view(), name='course-progress'),
    path('courses/<int:pk>/materials/', CourseMaterialsView.as_view(), name='course-materials'),
    path('courses/<int:pk>/materials/<int:material_pk>/', CourseMaterialDetailView.as_view(), name='course-material-detail'),

    path('orders/', OrderCollectionView.as_view(), name='order-list'),
    path('orders/student/<int:student_pk>/', StudentOrdersView.as_view(), name='student-orders'),
    path('orders/teacher/<int:teacher_pk>/', TeacherOrdersView.as_view(), name='teacher-orders'),
    path('orders/<int:pk>/', OrderDetailView.as_view(), name='order-detail'),
    path('orders/<int:pk>/complete/', CompleteOrderView.as_view(), name='order-complete'),
    path('orders/<int:pk>/cancel/', CancelOrderView.as_view(), name='order-cancel'),
    path('orders/<int:pk>/refund/', RefundOrderView.as_view(), name='order-refund'),

    path('teachers/<int:teacher_pk>/reviews/', TeacherReviewsView.as_view(), name='teacher-reviews'),

    path('admin/users/', AdminUserListView.as_view(), name='admin-users'),
    path('admin/users/<int:pk>/', AdminUserDeleteView.as_view(), name='admin-user-delete'),
    path('admin/users/<int:pk>/status/', AdminUserStatusView.as_view(), name='admin-user-status'),
    path('admin/courses/', AdminCourseListView.as_view(), name='admin-courses'),
    path('admin/courses/<int:pk>/status/', AdminCourseStatusView.as_view(), name='admin-course-status'),
    path('admin/orders/', AdminOrderListView.as_view(), name='admin-orders'),
]
