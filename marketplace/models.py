from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone


def empty_list():
    return []


class User(AbstractUser):
    ADMIN = 'admin'
    TEACHER = 'teacher'
    STUDENT = 'student'
    ROLE_CHOICES = [
        (ADMIN, 'Admin'),
        (TEACHER, 'Teacher'),
        (STUDENT, 'Student'),
    ]

    name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=STUDENT)
    profile_image = models.CharField(max_length=500, blank=True, default='')
    bio = models.CharField(max_length=500, blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    address = models.CharField(max_length=255, blank=True, default='')

    # teacher profile
    subjects = models.JSONField(default=empty_list, blank=True)
    experience = models.PositiveIntegerField(default=0)
    education = models.CharField(max_length=255, blank=True, default='')
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    teacher_rating_average = models.FloatField(default=0)
    teacher_rating_count = models.PositiveIntegerField(default=0)

    # student profile
    grade = models.CharField(max_length=50, blank=True, default='')
    interests = models.JSONField(default=empty_list, blank=True)

    is_verified = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    @property
    def is_teacher(self):
        return self.role == self.TEACHER

    @property
    def is_student(self):
        return self.role == self.STUDENT

    @property
    def is_admin(self):
        return self.role == self.ADMIN

    def __str__(self):
        return self.email


class TeacherReview(models.Model):
    teacher = models.ForeignKey(User, on_delete=models.CASCADE, related_name='teacher_reviews')
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='given_teacher_reviews')
    course = models.ForeignKey('Course', on_delete=models.SET_NULL, null=True, related_name='teacher_reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['teacher', 'student'], name='unique_teacher_review_per_student'),
        ]

    def __str__(self):
        return f"{self.student_id} rated teacher {self.teacher_id}: {self.rating}"


class Tag(models.Model):
    name = models.CharField(max_length=50, unique=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Course(models.Model):
    BEGINNER = 'beginner'
    INTERMEDIATE = 'intermediate'
    ADVANCED = 'advanced'
    LEVEL_CHOICES = [
        (BEGINNER, 'Beginner'),
        (INTERMEDIATE, 'Intermediate'),
        (ADVANCED, 'Advanced'),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField()
    teacher = models.ForeignKey(User, on_delete=models.CASCADE, related_name='courses')
    subject = models.CharField(max_length=100)
    level = models.CharField(max_length=20, choices=LEVEL_CHOICES, default=BEGINNER)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    duration = models.FloatField(validators=[MinValueValidator(0)], help_text='Duration in hours')
    thumbnail = models.CharField(max_length=500, blank=True, default='')
    requirements = models.JSONField(default=empty_list, blank=True)
    learning_outcomes = models.JSONField(default=empty_list, blank=True)
    max_students = models.PositiveIntegerField(default=50)
    tags = models.ManyToManyField(Tag, blank=True, related_name='courses')

    rating_average = models.FloatField(default=0, validators=[MinValueValidator(0), MaxValueValidator(5)])
    rating_count = models.PositiveIntegerField(default=0)

    is_published = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_published', 'is_active'], name='marketplace_is_publ_6b1f0e_idx'),
            models.Index(fields=['subject'], name='marketplace_subject_3c8a2d_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def enrolled_count(self):
        return self.enrollments.count()


class CourseMaterial(models.Model):
    VIDEO = 'video'
    DOCUMENT = 'document'
    LINK = 'link'
    QUIZ = 'quiz'
    TYPE_CHOICES = [
        (VIDEO, 'Video'),
        (DOCUMENT, 'Document'),
        (LINK, 'Link'),
        (QUIZ, 'Quiz'),
    ]

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='materials')
    title = models.CharField(max_length=200)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    url = models.CharField(max_length=500)
    description = models.TextField(blank=True, default='')
    duration = models.PositiveIntegerField(default=0, help_text='Duration in minutes')

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.title


class SyllabusWeek(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='syllabus')
    week = models.PositiveIntegerField()
    title = models.CharField(max_length=200)
    description = models.TextField()
    materials = models.ManyToManyField(CourseMaterial, blank=True, related_name='syllabus_weeks')

    class Meta:
        ordering = ['week', 'id']

    def __str__(self):
        return f"Week {self.week}: {self.title}"


class Enrollment(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='enrollments')
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='enrollments')
    enrolled_at = models.DateTimeField(default=timezone.now)
    progress = models.PositiveSmallIntegerField(default=0, validators=[MinValueValidator(0), MaxValueValidator(100)])
    completed = models.BooleanField(default=False)

    class Meta:
        ordering = ['enrolled_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['course', 'student'], name='unique_enrollment_per_student'),
        ]

    def __str__(self):
        return f"{self.student_id}->{self.course_id}"


class CourseReview(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='reviews')
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='course_reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['course', 'student'], name='unique_course_review_per_student'),
        ]

    def __str__(self):
        return f"{self.student_id} rated course {self.course_id}: {self.rating}"


class Order(models.Model):
    PENDING = 'pending'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'
    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
        (REFUNDED, 'Refunded'),
    ]

    PAYMENT_PENDING = 'pending'
    PAYMENT_PAID = 'paid'
    PAYMENT_FAILED = 'failed'
    PAYMENT_REFUNDED = 'refunded'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_FAILED, 'Failed'),
        (PAYMENT_REFUNDED, 'Refunded'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('stripe', 'Stripe'),
        ('paypal', 'PayPal'),
        ('bank_transfer', 'Bank transfer'),
        ('cash', 'Cash'),
    ]

    student = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='orders')
    course = models.ForeignKey(Course, on_delete=models.SET_NULL, null=True, related_name='orders')
    teacher = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='sales')
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    transaction_id = models.CharField(max_length=100, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    refund_reason = models.TextField(blank=True, default='')
    refunded_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['student', 'course'], name='marketplace_student_9e4c1a_idx'),
            models.Index(fields=['teacher', 'status'], name='marketplace_teacher_2f7b3e_idx'),
            models.Index(fields=['status', 'created_at'], name='marketplace_status_5d0a8c_idx'),
        ]

    def __str__(self):
        return f"Order {self.pk} ({self.status}) for course {self.course_id}"
