from django.urls import path
from . import views

app_name = 'game'

urlpatterns = [
    # Reference data
    path('currencies/', views.currencies, name='currencies'),
    path('achievements/', views.achievements, name='achievements'),

    # Posts
    path('posts/', views.posts, name='post-create'),
    path('posts/<str:post_id>/', views.post_detail, name='post-detail'),
    path('posts/<str:post_id>/guess/', views.guess, name='post-guess'),
    path('posts/<str:post_id>/reveal/', views.reveal, name='post-reveal'),

    # Stats
    path('leaderboard/', views.leaderboard, name='leaderboard'),
    path('profile/', views.profile, name='profile'),
    path('users/<str:username>/', views.user_stats, name='user-stats'),
]
