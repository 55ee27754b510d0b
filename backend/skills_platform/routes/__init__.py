# Routes package init
"""
Skills Platform Backend — API Routes Package
==============================================

What:  HTTP route handlers that accept requests and return JSON envelopes.

Route Inventory:
    - root.py:         GET   /                              (endpoint map)
                       GET   /api/health                    (service health)
    - schools.py:      POST  /api/schools
    - auth.py:         POST  /api/auth/register
                       POST  /api/auth/login
    - tasks.py:        GET   /api/tasks/student/{id}
                       GET   /api/tasks/teacher/{id}
                       POST  /api/tasks
                       PATCH /api/tasks/{id}
    - submissions.py:  POST  /api/submissions
                       GET   /api/submissions/task/{id}
    - performance.py:  GET   /api/performance/student/{id}
    - ai.py:           POST  /api/ai/grade-submission
                       POST  /api/ai/recommendations
                       POST  /api/ai/analyze-performance
                       POST  /api/ai/evaluate-task

Routes are thin: parse the request, call one service, wrap the result.
Errors are raised by services and rendered by the handlers in main.py.
"""
