# Services package init
"""
Skills Platform Backend — Services Layer
==========================================

What:  Business logic between routes (HTTP) and the database.
How:   Each service is a stateless class with a module-level instance.
       Methods take the request's AsyncSession and return response schemas.

Service Inventory:
    - LLMService (abstract): text-in, text-out model interface + JSON extraction
    - GeminiService: Google Gemini implementation with retry and circuit breaker
    - prompts: prompt templates for the AI operations
    - SchoolService, AuthService, TaskService, SubmissionService: CRUD rules
    - PerformanceService: skills aggregation for the student dashboard
    - GradingService: the four AI operations
"""
