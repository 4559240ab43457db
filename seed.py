from datetime import date, timedelta

from portal import create_app
from portal import firestore_dao as dao
from portal.firebase_init import get_auth
from portal.models import Homework, Profile, Question, Quiz, Resource, Session


def seed_database():
    app = create_app()
    with app.app_context():
        auth = get_auth()

        password = 'harekrishna108'

        print("Creating accounts...")

        def create_account(email, name, role, spiritual_name=None, category='Regular', extra=None):
            try:
                fb_user = auth.create_user(email=email, password=password, display_name=name)
            except auth.EmailAlreadyExistsError:
                fb_user = auth.get_user_by_email(email)
            existing = dao.get_profile_by_email(email)
            if existing:
                return existing
            profile = Profile(
                name=name,
                spiritual_name=spiritual_name,
                email=email,
                phone='+91 98765 43210',
                role=role,
                category=category,
                **(extra or {})
            )
            return dao.create_profile(profile, uid=fb_user.uid)

        admin = create_account('admin@iskcon-portal.org', 'Temple Administrator', 'admin')
        mentors = [
            create_account('mentor1@iskcon-portal.org', 'Radhika Sharma', 'mentor',
                           spiritual_name='Radha Priya Devi Dasi', category='Advanced seeker',
                           extra={'skills': ['Kirtan', 'Counselling']}),
            create_account('mentor2@iskcon-portal.org', 'Arjun Mehta', 'mentor',
                           spiritual_name='Amogha Lila Das', category='Advanced seeker',
                           extra={'skills': ['Gita study', 'Public speaking']}),
        ]

        categories = ['Regular', 'Favourite', 'Sankalpa', 'Guest', 'Volunteer']
        students = []
        for i in range(1, 6):
            students.append(create_account(
                f'student{i}@iskcon-portal.org',
                f'Student {i}',
                'student',
                category=categories[i - 1],
                extra={
                    'branch': 'Computer Science' if i % 2 else 'Mechanical',
                    'year_of_study': str((i % 4) + 1),
                    'interests': ['Kirtan', 'Bhagavad Gita'],
                },
            ))

        print("Creating sessions...")
        today = date.today()
        gita_class = dao.create_session(Session(
            title='Bhagavad Gita Chapter 2',
            description='The eternal nature of the soul.',
            date=(today - timedelta(days=7)).isoformat(),
            location='Temple Hall',
            facilitator=mentors[1].display_name,
            type='Regular',
            status='Completed',
            attendee_ids=[s.id for s in students[:4]],
        ))
        kirtan = dao.create_session(Session(
            title='Sunday Kirtan Evening',
            date=(today - timedelta(days=2)).isoformat(),
            location='Temple Hall',
            facilitator=mentors[0].display_name,
            type='Event',
            status='Completed',
            attendee_ids=[s.id for s in students[2:]],
        ))
        dao.create_session(Session(
            title='Weekend Youth Camp',
            description='Two days of japa, kirtan and study at the farm.',
            date=(today + timedelta(days=10)).isoformat(),
            location='Govardhan Eco Village',
            facilitator=mentors[1].display_name,
            type='Camp',
            status='Upcoming',
        ))

        print("Creating homework...")
        dao.create_homework(Homework(
            session_id=gita_class.id,
            title='Reflection on BG 2.13',
            description='Write one page on how the verse applies to student life.',
            due_date=(today + timedelta(days=3)).isoformat(),
        ))
        dao.create_homework(Homework(
            session_id=kirtan.id,
            title='Learn the Maha-mantra tune',
            due_date=(today + timedelta(days=5)).isoformat(),
        ))

        print("Creating quiz...")
        dao.create_quiz(Quiz(
            session_id=gita_class.id,
            topic='Bhagavad Gita Chapter 2',
            questions=[
                Question(
                    question='According to BG 2.20, the soul is:',
                    options=['Born at birth', 'Never born and never dies', 'Created by karma', 'Part of the body'],
                    correct_answer=1,
                    explanation='The soul is unborn, eternal, ever-existing and primeval.',
                ),
                Question(
                    question='Who speaks the Bhagavad Gita?',
                    options=['Arjuna', 'Sanjaya', 'Lord Krishna', 'Vyasadeva'],
                    correct_answer=2,
                    explanation='Lord Krishna speaks the Gita to Arjuna on the battlefield.',
                ),
                Question(
                    question='What is Arjuna\'s condition at the start of Chapter 2?',
                    options=['Joyful', 'Overwhelmed by grief', 'Angry', 'Indifferent'],
                    correct_answer=1,
                    explanation='Arjuna is overwhelmed by compassion and grief.',
                ),
            ],
        ))

        print("Creating resources...")
        resources = [
            ('Bhagavad Gita As It Is', 'book', 'Scripture', 'https://vedabase.io/en/library/bg/'),
            ('Introduction to Japa', 'video', 'Sadhana', 'https://www.youtube.com/watch?v=japa-intro'),
            ('Srimad Bhagavatam Class', 'lecture', 'Scripture', 'https://vedabase.io/en/library/sb/'),
            ('Janmashtami Celebrations', 'photo', 'Festivals', 'https://iskcon-portal.org/gallery/janmashtami'),
        ]
        for title, resource_type, category, url in resources:
            dao.create_resource(Resource(title=title, type=resource_type, category=category, url=url))

        print("Creating mentorship request...")
        dao.create_mentorship_request(students[0].id, mentors[0].id, 'I would like guidance on my daily sadhana.')

        dao.create_notification('Welcome', 'The community portal is ready.')

        print("\n" + "=" * 60)
        print("    Test accounts")
        print("=" * 60)
        print(f"\n[Admin]    {admin.email}")
        print("[Mentors]  mentor1@iskcon-portal.org, mentor2@iskcon-portal.org")
        print("[Students] student1~5@iskcon-portal.org")
        print(f"Password:  {password} (all accounts)")
        print("\n" + "=" * 60)
        print("Database seeded!")


if __name__ == '__main__':
    seed_database()
