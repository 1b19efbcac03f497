from rest_framework import serializers

from .models import (
    Course,
    CourseMaterial,
    CourseReview,
    Enrollment,
    Order,
    SyllabusWeek,
    TeacherReview,
    User,
)


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('id', 'name', 'email', 'profile_image')


class UserSerializer(serializers.ModelSerializer):
    teacher_rating = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = (
            'id', 'name', 'email', 'role', 'profile_image', 'bio', 'phone', 'address',
            'subjects', 'experience', 'education', 'hourly_rate', 'teacher_rating',
            'grade', 'interests', 'is_active', 'is_verified', 'created_at', 'updated_at',
        )
        read_only_fields = fields

    def get_teacher_rating(self, user):
        if not user.is_teacher:
            return None
        return {'average': user.teacher_rating_average, 'count': user.teacher_rating_count}


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6, style={'input_type': 'password'})
    role = serializers.ChoiceField(choices=[User.TEACHER, User.STUDENT], default=User.STUDENT)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    bio = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Name cannot be blank.")
        return value.strip()


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(style={'input_type': 'password'})


class ProfileSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    bio = serializers.CharField(max_length=500, allow_blank=True)
    phone = serializers.CharField(max_length=30, allow_blank=True)
    address = serializers.CharField(max_length=255, allow_blank=True)
    profile_image = serializers.CharField(max_length=500, allow_blank=True)


class TeacherProfileSerializer(serializers.Serializer):
    subjects = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=True)
    experience = serializers.IntegerField(min_value=0)
    education = serializers.CharField(max_length=255, allow_blank=True)
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)

    def validate_subjects(self, value):
        return [subject.strip() for subject in value if subject.strip()]


class StudentProfileSerializer(serializers.Serializer):
    grade = serializers.CharField(max_length=50, allow_blank=True)
    interests = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=True)

    def validate_interests(self, value):
        return [interest.strip() for interest in value if interest.strip()]


class UserStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField(required=False)
    is_verified = serializers.BooleanField(required=False)


class CourseMaterialSerializer(serializers.ModelSerializer):
    class Meta:
        model = CourseMaterial
        fields = ('id', 'title', 'type', 'url', 'description', 'duration')
        read_only_fields = ['id']


class SyllabusWeekSerializer(serializers.ModelSerializer):
    materials = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = SyllabusWeek
        fields = ('id', 'week', 'title', 'description', 'materials')


class SyllabusWeekInputSerializer(serializers.Serializer):
    week = serializers.IntegerField(min_value=1)
    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    materials = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)


class EnrollmentSerializer(serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)

    class Meta:
        model = Enrollment
        fields = ('id', 'student', 'enrolled_at', 'progress', 'completed')


class CourseReviewSerializer(serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)

    class Meta:
        model = CourseReview
        fields = ('id', 'student', 'rating', 'comment', 'created_at')


class CourseTeacherSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('id', 'name', 'email', 'profile_image', 'bio', 'subjects', 'experience', 'education')


class CourseListSerializer(serializers.ModelSerializer):
    teacher = CourseTeacherSerializer(read_only=True)
    tags = serializers.SlugRelatedField(many=True, read_only=True, slug_field='name')
    rating = serializers.SerializerMethodField()
    enrolled_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Course
        fields = (
            'id', 'title', 'description', 'teacher', 'subject', 'level', 'price', 'duration',
            'thumbnail', 'max_students', 'enrolled_count', 'rating', 'tags',
            'is_published', 'is_active', 'created_at', 'updated_at',
        )

    def get_rating(self, course):
        return {'average': course.rating_average, 'count': course.rating_count}


class CourseSerializer(CourseListSerializer):
    materials = CourseMaterialSerializer(many=True, read_only=True)
    syllabus = SyllabusWeekSerializer(many=True, read_only=True)
    enrolled_students = EnrollmentSerializer(source='enrollments', many=True, read_only=True)
    reviews = CourseReviewSerializer(many=True, read_only=True)

    class Meta(CourseListSerializer.Meta):
        fields = CourseListSerializer.Meta.fields + (
            'requirements', 'learning_outcomes', 'materials', 'syllabus', 'enrolled_students', 'reviews',
        )


class CourseWriteSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    subject = serializers.CharField(max_length=100)
    level = serializers.ChoiceField(choices=Course.LEVEL_CHOICES, default=Course.BEGINNER)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    duration = serializers.FloatField(min_value=0)
    thumbnail = serializers.CharField(max_length=500, required=False, allow_blank=True)
    requirements = serializers.ListField(child=serializers.CharField(), required=False)
    learning_outcomes = serializers.ListField(child=serializers.CharField(), required=False)
    max_students = serializers.IntegerField(min_value=1, required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    syllabus = SyllabusWeekInputSerializer(many=True, required=False)


class PublishSerializer(serializers.Serializer):
    is_published = serializers.BooleanField()


class CourseStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class MaterialInputSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    type = serializers.CharField(max_length=20)
    url = serializers.CharField(max_length=500)
    description = serializers.CharField(required=False, allow_blank=True)
    duration = serializers.IntegerField(min_value=0, required=False)


class MaterialListInputSerializer(serializers.Serializer):
    materials = MaterialInputSerializer(many=True)


class ReviewInputSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField()


class ProgressSerializer(serializers.Serializer):
    progress = serializers.IntegerField()


class TeacherReviewInputSerializer(serializers.Serializer):
    course_id = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class TeacherReviewSerializer(serializers.ModelSerializer):
    student = serializers.SerializerMethodField()
    course = serializers.SerializerMethodField()

    class Meta:
        model = TeacherReview
        fields = ('id', 'student', 'course', 'rating', 'comment', 'created_at')

    def get_student(self, review):
        return {'id': review.student_id, 'name': review.student.name, 'profile_image': review.student.profile_image}

    def get_course(self, review):
        if review.course is None:
            return None
        return {'id': review.course_id, 'title': review.course.title}


class OrderSerializer(serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)
    teacher = UserSummarySerializer(read_only=True)
    course = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = (
            'id', 'student', 'course', 'teacher', 'amount', 'status', 'payment_status',
            'payment_method', 'transaction_id', 'notes', 'refund_reason', 'refunded_at',
            'created_at', 'updated_at',
        )
        read_only_fields = fields

    def get_course(self, order):
        if order.course is None:
            return None
        return {'id': order.course_id, 'title': order.course.title, 'price': str(order.course.price)}


class OrderCreateSerializer(serializers.Serializer):
    course_id = serializers.IntegerField()
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default='cash')


class PurchaseSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default='cash')
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class CompleteOrderSerializer(serializers.Serializer):
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class OrderReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
