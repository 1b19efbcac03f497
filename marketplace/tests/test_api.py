import pytest

from marketplace.models import Enrollment, Order

pytestmark = pytest.mark.django_db


def test_register_and_login(client_for):
    client = client_for()
    response = client.post('/api/auth/register/', {
        'name': 'New Student',
        'email': 'New@Example.com',
        'password': 'secret123',
    }, format='json')

    assert response.status_code == 201
    assert response.data['user']['email'] == 'new@example.com'
    assert response.data['user']['role'] == 'student'
    assert 'password' not in response.data['user']

    response = client.post('/api/auth/login/', {'email': 'new@example.com', 'password': 'secret123'}, format='json')
    assert response.status_code == 200
    assert response.data['access']
    assert response.data['refresh']


def test_register_rejects_admin_role(client_for):
    response = client_for().post('/api/auth/register/', {
        'name': 'Mallory',
        'email': 'mallory@example.com',
        'password': 'secret123',
        'role': 'admin',
    }, format='json')
    assert response.status_code == 400
    assert set(response.data) == {'message', 'error'}


def test_register_duplicate_email(client_for, student):
    response = client_for().post('/api/auth/register/', {
        'name': 'Sam', 'email': 'sam@example.com', 'password': 'secret123',
    }, format='json')
    assert response.status_code == 400
    assert response.data == {'message': 'User already exists with this email.', 'error': 'duplicate_email'}


def test_login_wrong_password(client_for, student):
    response = client_for().post('/api/auth/login/', {'email': 'sam@example.com', 'password': 'nope'}, format='json')
    assert response.status_code == 400
    assert response.data['error'] == 'invalid_credentials'


def test_token_authenticates_requests(client_for, student):
    client = client_for()
    tokens = client.post('/api/auth/login/', {'email': 'sam@example.com', 'password': 'secret123'}, format='json').data

    client.credentials(HTTP_AUTHORIZATION='Bearer ' + tokens['access'])
    response = client.get(f'/api/auth/profile/{student.pk}/')
    assert response.status_code == 200
    assert response.data['name'] == 'Sam Student'


def test_profile_is_private(client_for, student, second_student):
    response = client_for(second_student).get(f'/api/auth/profile/{student.pk}/')
    assert response.status_code == 403
    assert 'message' in response.data


def test_student_profile_update(client_for, student):
    response = client_for(student).put(f'/api/auth/student-profile/{student.pk}/',
                                       {'grade': '11'}, format='json')
    assert response.status_code == 200
    assert response.data['user']['grade'] == '11'


def test_teacher_profile_update_for_student_is_forbidden(client_for, student):
    response = client_for(student).put(f'/api/auth/teacher-profile/{student.pk}/',
                                       {'experience': 3}, format='json')
    assert response.status_code == 403
    assert response.data['error'] == 'wrong_role'


def test_course_lifecycle(client_for, teacher):
    client = client_for(teacher)
    response = client.post('/api/courses/', {
        'title': 'Chemistry',
        'description': 'Atoms',
        'subject': 'science',
        'price': '15.00',
        'duration': 8,
        'tags': ['lab'],
    }, format='json')
    assert response.status_code == 201
    course_id = response.data['course']['id']
    assert response.data['course']['tags'] == ['lab']

    assert client_for().get('/api/courses/').data['courses'] == []

    response = client.patch(f'/api/courses/{course_id}/publish/', {'is_published': True}, format='json')
    assert response.status_code == 200
    assert response.data['course']['is_published'] is True

    response = client_for().get('/api/courses/')
    assert [course['id'] for course in response.data['courses']] == [course_id]
    assert response.data['pagination'] == {'current': 1, 'total': 1, 'hasNext': False, 'hasPrev': False}


def test_course_create_by_student_fails(client_for, student):
    response = client_for(student).post('/api/courses/', {
        'title': 'x', 'description': 'y', 'subject': 'z', 'price': '1.00', 'duration': 1,
    }, format='json')
    assert response.status_code == 400
    assert response.data['error'] == 'invalid_teacher'


def test_course_pagination(client_for, make_course):
    for number in range(3):
        make_course(title=f'Course {number}')

    response = client_for().get('/api/courses/', {'page': 2, 'limit': 2})
    assert len(response.data['courses']) == 1
    assert response.data['pagination'] == {'current': 2, 'total': 2, 'hasNext': False, 'hasPrev': True}


def test_page_past_the_end_is_empty(client_for, course):
    response = client_for().get('/api/courses/', {'page': 5})
    assert response.status_code == 200
    assert response.data['courses'] == []
    assert response.data['pagination'] == {'current': 5, 'total': 1, 'hasNext': False, 'hasPrev': True}


def test_bad_page_number_is_400(client_for, course):
    response = client_for().get('/api/courses/', {'page': 'zero'})
    assert response.status_code == 400


def test_course_update_by_other_teacher(client_for, course, other_teacher):
    response = client_for(other_teacher).put(f'/api/courses/{course.pk}/', {'title': 'Mine'}, format='json')
    assert response.status_code == 403
    assert response.data['error'] == 'not_course_owner'


def test_unknown_course_is_404(client_for):
    response = client_for().get('/api/courses/9999/')
    assert response.status_code == 404
    assert response.data == {'message': 'Course not found.', 'error': 'course_not_found'}


def test_text_search_requires_query(client_for, course):
    response = client_for().get('/api/courses/search/text/')
    assert response.status_code == 400
    assert response.data['message'] == 'Search query is required.'

    response = client_for().get('/api/courses/search/text/', {'q': 'algebra'})
    assert response.status_code == 200
    assert response.data['totalResults'] == 1
    assert response.data['searchParams'] == {'q': 'algebra'}


def test_bad_number_filter_is_400(client_for, course):
    response = client_for().get('/api/courses/search/advanced/', {'minPrice': 'abc'})
    assert response.status_code == 400


def test_order_flow(client_for, course, student, teacher):
    client = client_for(student)
    response = client.post('/api/orders/', {'course_id': course.pk, 'payment_method': 'stripe'}, format='json')
    assert response.status_code == 201
    order_id = response.data['order']['id']
    assert response.data['order']['amount'] == '10.00'

    response = client.patch(f'/api/orders/{order_id}/complete/', {'transaction_id': 'tx-9'}, format='json')
    assert response.status_code == 200
    assert response.data['order']['status'] == Order.COMPLETED
    assert Enrollment.objects.filter(course=course, student=student).exists()

    response = client.patch(f'/api/orders/{order_id}/refund/', {'reason': 'please'}, format='json')
    assert response.status_code == 403

    response = client_for(teacher).patch(f'/api/orders/{order_id}/refund/', {'reason': 'please'}, format='json')
    assert response.status_code == 200
    assert response.data['order']['status'] == Order.REFUNDED
    assert not Enrollment.objects.filter(course=course, student=student).exists()


def test_order_visible_to_parties_only(client_for, course, student, second_student, admin_user):
    order_id = client_for(student).post('/api/orders/', {'course_id': course.pk}, format='json').data['order']['id']

    assert client_for(second_student).get(f'/api/orders/{order_id}/').status_code == 403
    assert client_for(admin_user).get(f'/api/orders/{order_id}/').status_code == 200


def test_enroll_endpoint(client_for, course, student):
    response = client_for(student).post(f'/api/courses/{course.pk}/enroll/', {}, format='json')
    assert response.status_code == 200
    assert response.data['order']['status'] == Order.COMPLETED
    assert response.data['course']['enrolled_count'] == 1

    response = client_for(student).post(f'/api/courses/{course.pk}/enroll/', {}, format='json')
    assert response.status_code == 400
    assert response.data['error'] == 'already_enrolled'


def test_materials_hidden_from_strangers(client_for, course, student, teacher):
    assert client_for(student).get(f'/api/courses/{course.pk}/materials/').status_code == 403
    assert client_for(teacher).get(f'/api/courses/{course.pk}/materials/').status_code == 200


def test_teacher_reviews_endpoint(client_for, course, student, teacher):
    client_for(student).post(f'/api/courses/{course.pk}/enroll/', {}, format='json')

    response = client_for(student).post(f'/api/teachers/{teacher.pk}/reviews/', {
        'course_id': course.pk, 'rating': 5, 'comment': 'Great',
    }, format='json')
    assert response.status_code == 201
    assert response.data['rating'] == {'average': 5, 'count': 1}

    response = client_for().get(f'/api/teachers/{teacher.pk}/reviews/')
    assert response.status_code == 200
    assert [review['comment'] for review in response.data['reviews']] == ['Great']


def test_teacher_review_without_enrollment(client_for, course, student, teacher):
    response = client_for(student).post(f'/api/teachers/{teacher.pk}/reviews/', {
        'course_id': course.pk, 'rating': 4,
    }, format='json')
    assert response.status_code == 403
    assert response.data['error'] == 'not_enrolled'


def test_admin_endpoints_need_admin(client_for, student, admin_user):
    assert client_for(student).get('/api/admin/users/').status_code == 403
    assert client_for().get('/api/admin/users/').status_code == 401

    response = client_for(admin_user).get('/api/admin/users/', {'role': 'student'})
    assert response.status_code == 200
    assert [user['email'] for user in response.data['users']] == ['sam@example.com']


def test_admin_delete_user(client_for, student, admin_user):
    response = client_for(admin_user).delete(f'/api/admin/users/{student.pk}/')
    assert response.status_code == 200
    assert response.data['deletedUser']['email'] == 'sam@example.com'

    response = client_for(admin_user).delete(f'/api/admin/users/{admin_user.pk}/')
    assert response.status_code == 400
    assert response.data['error'] == 'self_deletion'
