"""
URL configuration for trimcast project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/stable/topics/http/urls/
"""

from django.urls import path

from clips.views import health_view, trim_view

urlpatterns = [
    # Health check
    path('', health_view, name='health'),
    # Trim a video range and publish the clip
    path('trim', trim_view, name='trim'),
    path('trim/', trim_view),
]
