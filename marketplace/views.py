from rest_framework import status, generics
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.tokens import RefreshToken

from . import catalog, enrollment, identity, orders, ratings, search
from .exceptions import Forbidden, ValidationFailed
from .models import Course, User
from .permissions import IsAdminRole, IsSelfOrAdmin
from .serializers import *


def parse_bool(value):
    if value is None or value == '':
        return None
    return str(value).lower() == 'true'


def query_int(request, name, default):
    value = request.query_params.get(name)
    if value in (None, ''):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationFailed(f"{name} must be an integer.")


def payload(serializer_class, request, partial=False):
    serializer = serializer_class(data=request.data, partial=partial)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class EnvelopeListView(generics.GenericAPIView):
    """List endpoint answering ``{message?, <key>: [...], pagination}``."""

    result_key = 'results'

    def list_response(self, queryset, message=None, **extra):
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.paginator.get_paginated_response(serializer.data, key=self.result_key, message=message, **extra)


# auth

class RegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        data = payload(RegisterSerializer, request)
        user = identity.register(**data)
        return Response({"message": "User registered successfully", "user": UserSerializer(user).data},
                        status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        data = payload(LoginSerializer, request)
        user = identity.authenticate(data['email'], data['password'])
        refresh = RefreshToken.for_user(user)
        return Response({
            "message": "Login successful",
            "user": UserSerializer(user).data,
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }, status=status.HTTP_200_OK)


class ProfileView(APIView):
    permission_classes = [IsSelfOrAdmin]

    def get(self, request, pk):
        return Response(UserSerializer(identity.get_user(pk)).data)

    def put(self, request, pk):
        user = identity.update_profile(pk, payload(ProfileSerializer, request, partial=True))
        return Response({"message": "Profile updated successfully", "user": UserSerializer(user).data})


class TeacherProfileView(APIView):
    permission_classes = [IsSelfOrAdmin]

    def put(self, request, pk):
        user = identity.update_teacher_profile(pk, payload(TeacherProfileSerializer, request, partial=True))
        return Response({"message": "Teacher profile updated successfully", "user": UserSerializer(user).data})


class StudentProfileView(APIView):
    permission_classes = [IsSelfOrAdmin]

    def put(self, request, pk):
        user = identity.update_student_profile(pk, payload(StudentProfileSerializer, request, partial=True))
        return Response({"message": "Student profile updated successfully", "user": UserSerializer(user).data})


class TeacherDirectoryView(generics.ListAPIView):
    permission_classes = [AllowAny]
    serializer_class = UserSerializer
    pagination_class = None

    def get_queryset(self):
        return identity.list_active(User.TEACHER)


class StudentDirectoryView(generics.ListAPIView):
    serializer_class = UserSerializer
    pagination_class = None

    def get_queryset(self):
        return identity.list_active(User.STUDENT)


# courses

SEARCH_PARAMS = {
    'q': 'q',
    'search': 'q',
    'tags': 'tags',
    'subject': 'subject',
    'level': 'level',
    'minPrice': 'min_price',
    'maxPrice': 'max_price',
    'teacherId': 'teacher_id',
    'minRating': 'min_rating',
    'minDuration': 'min_duration',
    'maxDuration': 'max_duration',
    'sortBy': 'sort_by',
    'sortOrder': 'sort_order',
}


class CourseSearchView(EnvelopeListView):
    """Published course listing. Every search endpoint is this view with a
    different set of accepted query parameters."""

    permission_classes = [AllowAny]
    serializer_class = CourseListSerializer
    result_key = 'courses'
    accepted_params = ('search', 'subject', 'level', 'minPrice', 'maxPrice', 'teacherId')
    require_query = False

    def search_params(self):
        params = {}
        for name in self.accepted_params:
            value = self.request.query_params.get(name)
            if value not in (None, ''):
                params[name] = value
        return params

    def get(self, request, *args, **kwargs):
        params = self.search_params()
        if self.require_query and not params.get('q', '').strip():
            raise ValidationFailed('Search query is required.')
        queryset = search.search_courses(**{SEARCH_PARAMS[name]: value for name, value in params.items()})
        return self.list_response(queryset, searchParams=params, totalResults=queryset.count())


class TagSearchView(CourseSearchView):
    accepted_params = ('tags', 'subject', 'level', 'minPrice', 'maxPrice', 'teacherId')


class TextSearchView(CourseSearchView):
    accepted_params = ('q', 'subject', 'level', 'minPrice', 'maxPrice', 'teacherId')
    require_query = True


class AdvancedSearchView(CourseSearchView):
    accepted_params = tuple(name for name in SEARCH_PARAMS if name != 'search')


class SuggestionsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        limit = query_int(request, 'limit', 5)
        return Response({"suggestions": search.suggestions(request.query_params.get('q'), limit)})


class AllTagsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        tags = search.all_tags()
        return Response({"tags": tags, "count": len(tags)})


class PopularTagsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        limit = query_int(request, 'limit', 10)
        popular, total = search.popular_tags(limit)
        return Response({"popularTags": popular, "total": total})


class CourseCollectionView(CourseSearchView):
    """GET browses published courses, POST creates a course for the caller."""

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated()]
        return super().get_permissions()

    def post(self, request):
        data = payload(CourseWriteSerializer, request)
        course = catalog.create_course(request.user.pk, data)
        return Response({"message": "Course created successfully", "course": CourseSerializer(course).data},
                        status=status.HTTP_201_CREATED)


class CourseDetailView(APIView):

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request, pk):
        return Response(CourseSerializer(catalog.get_course(pk)).data)

    def put(self, request, pk):
        course = catalog.update_course(pk, request.user.pk, payload(CourseWriteSerializer, request, partial=True))
        return Response({"message": "Course updated successfully", "course": CourseSerializer(course).data})

    def delete(self, request, pk):
        catalog.delete_course(pk, request.user.pk)
        return Response({"message": "Course deleted successfully"}, status=status.HTTP_200_OK)


class CoursePublishView(APIView):

    def patch(self, request, pk):
        data = payload(PublishSerializer, request)
        course = catalog.publish_toggle(pk, request.user.pk, data['is_published'])
        state = 'published' if course.is_published else 'unpublished'
        return Response({"message": f"Course {state} successfully", "course": CourseSerializer(course).data})


class CourseEnrollView(APIView):

    def post(self, request, pk):
        data = payload(PurchaseSerializer, request)
        order = orders.purchase_course(request.user.pk, pk, data['payment_method'], data['transaction_id'])
        course = catalog.get_course(pk)
        return Response({
            "message": "Enrolled successfully",
            "order": OrderSerializer(order).data,
            "course": CourseSerializer(course).data,
        })


class CourseReviewView(APIView):

    def post(self, request, pk):
        data = payload(ReviewInputSerializer, request)
        course = ratings.add_or_replace_course_review(pk, request.user.pk, data['rating'], data['comment'])
        return Response({"message": "Review added successfully", "course": CourseSerializer(course).data})


class CourseProgressView(APIView):

    def patch(self, request, pk):
        data = payload(ProgressSerializer, request)
        enrollment.update_progress(pk, request.user.pk, data['progress'])
        return Response({"message": "Progress updated successfully",
                         "course": CourseSerializer(catalog.get_course(pk)).data})


class CourseMaterialsView(APIView):

    def get(self, request, pk):
        course = catalog.get_course(pk)
        user = request.user
        if not (user.is_admin or course.teacher_id == user.pk or enrollment.is_enrolled(course, user.pk)):
            raise Forbidden("You are not allowed to view materials of this course.")
        return Response(CourseMaterialSerializer(course.materials.all(), many=True).data)

    def post(self, request, pk):
        data = payload(MaterialListInputSerializer, request)
        course = catalog.add_materials(pk, request.user.pk, data['materials'])
        return Response({"message": "Materials added successfully", "course": CourseSerializer(course).data},
                        status=status.HTTP_201_CREATED)


class CourseMaterialDetailView(APIView):

    def put(self, request, pk, material_pk):
        data = payload(MaterialInputSerializer, request, partial=True)
        course = catalog.update_material(pk, material_pk, request.user.pk, data)
        return Response({"message": "Material updated successfully", "course": CourseSerializer(course).data})

    def delete(self, request, pk, material_pk):
        course = catalog.delete_material(pk, material_pk, request.user.pk)
        return Response({"message": "Material deleted successfully", "course": CourseSerializer(course).data})


class TeacherCoursesView(generics.ListAPIView):
    permission_classes = [AllowAny]
    serializer_class = CourseListSerializer
    pagination_class = None

    def get_queryset(self):
        return catalog.list_teacher_courses(self.kwargs['teacher_pk'])


class StudentCoursesView(generics.ListAPIView):
    permission_classes = [IsSelfOrAdmin]
    serializer_class = CourseListSerializer
    pagination_class = None
    user_lookup_kwarg = 'student_pk'

    def get_queryset(self):
        return catalog.list_student_courses(self.kwargs['student_pk'])


# orders

class OrderCollectionView(EnvelopeListView):
    serializer_class = OrderSerializer
    result_key = 'orders'

    def get(self, request):
        if not request.user.is_admin:
            raise Forbidden("Admins only.")
        queryset = orders.list_orders(request.query_params.get('status'), request.query_params.get('paymentStatus'))
        return self.list_response(queryset)

    def post(self, request):
        data = payload(OrderCreateSerializer, request)
        order = orders.create_order(request.user.pk, data['course_id'], data['payment_method'])
        return Response({"message": "Order created successfully", "order": OrderSerializer(order).data},
                        status=status.HTTP_201_CREATED)


class OrderDetailView(APIView):

    def get(self, request, pk):
        order = orders.get_order(pk)
        orders.check_party(order, request.user)
        return Response(OrderSerializer(order).data)


class StudentOrdersView(generics.ListAPIView):
    permission_classes = [IsSelfOrAdmin]
    serializer_class = OrderSerializer
    pagination_class = None
    user_lookup_kwarg = 'student_pk'

    def get_queryset(self):
        return orders.list_student_orders(self.kwargs['student_pk'])


class TeacherOrdersView(generics.ListAPIView):
    permission_classes = [IsSelfOrAdmin]
    serializer_class = OrderSerializer
    pagination_class = None
    user_lookup_kwarg = 'teacher_pk'

    def get_queryset(self):
        return orders.list_teacher_orders(self.kwargs['teacher_pk'])


class CompleteOrderView(APIView):

    def patch(self, request, pk):
        orders.check_party(orders.get_order(pk), request.user)
        data = payload(CompleteOrderSerializer, request)
        order = orders.complete_order(pk, data['transaction_id'])
        return Response({"message": "Order completed successfully", "order": OrderSerializer(orders.get_order(order.pk)).data})


class CancelOrderView(APIView):

    def patch(self, request, pk):
        orders.check_party(orders.get_order(pk), request.user)
        data = payload(OrderReasonSerializer, request)
        order = orders.cancel_order(pk, data['reason'])
        return Response({"message": "Order cancelled successfully", "order": OrderSerializer(orders.get_order(order.pk)).data})


class RefundOrderView(APIView):

    def patch(self, request, pk):
        orders.check_party(orders.get_order(pk), request.user, allow_student=False)
        data = payload(OrderReasonSerializer, request)
        order = orders.refund_order(pk, data['reason'])
        return Response({"message": "Order refunded successfully", "order": OrderSerializer(orders.get_order(order.pk)).data})


# teacher reviews

class TeacherReviewsView(APIView):

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request, teacher_pk):
        rating, reviews = ratings.list_teacher_reviews(teacher_pk)
        return Response({"rating": rating._asdict(), "reviews": TeacherReviewSerializer(reviews, many=True).data})

    def post(self, request, teacher_pk):
        data = payload(TeacherReviewInputSerializer, request)
        ratings.submit_teacher_review(teacher_pk, request.user.pk, data['course_id'], data['rating'], data['comment'])
        rating, reviews = ratings.list_teacher_reviews(teacher_pk)
        return Response({
            "message": "Review submitted successfully",
            "rating": rating._asdict(),
            "reviews": TeacherReviewSerializer(reviews, many=True).data,
        }, status=status.HTTP_201_CREATED)


# admin

class AdminUserListView(EnvelopeListView):
    permission_classes = [IsAdminRole]
    serializer_class = UserSerializer
    result_key = 'users'

    def get(self, request):
        queryset = identity.list_users(request.query_params.get('role'), parse_bool(request.query_params.get('isActive')))
        return self.list_response(queryset)


class AdminUserStatusView(APIView):
    permission_classes = [IsAdminRole]

    def patch(self, request, pk):
        data = payload(UserStatusSerializer, request)
        user = identity.update_status(pk, data.get('is_active'), data.get('is_verified'))
        return Response({"message": "User status updated successfully", "user": UserSerializer(user).data})


class AdminUserDeleteView(APIView):
    permission_classes = [IsAdminRole]

    def delete(self, request, pk):
        deleted = identity.delete_user(request.user.pk, pk)
        return Response({"message": "User deleted successfully", "deletedUser": deleted})


class AdminCourseListView(EnvelopeListView):
    permission_classes = [IsAdminRole]
    serializer_class = CourseListSerializer
    result_key = 'courses'

    def get(self, request):
        queryset = Course.objects.select_related('teacher').order_by('-created_at', '-id')
        is_published = parse_bool(request.query_params.get('isPublished'))
        is_active = parse_bool(request.query_params.get('isActive'))
        if is_published is not None:
            queryset = queryset.filter(is_published=is_published)
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return self.list_response(queryset)


class AdminCourseStatusView(APIView):
    permission_classes = [IsAdminRole]

    def patch(self, request, pk):
        data = payload(CourseStatusSerializer, request)
        course = catalog.set_active(pk, data['is_active'])
        return Response({"message": "Course status updated successfully", "course": CourseSerializer(course).data})


class AdminOrderListView(OrderCollectionView):
    permission_classes = [IsAdminRole]
    http_method_names = ['get', 'head', 'options']
