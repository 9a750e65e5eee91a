"""Built-in role table, agent profiles and per-role guidance text.

Everything here is immutable; the RoleRegistry is built from these values
once and passed to the components that need it.
"""

from types import MappingProxyType

from .base import AgentProfile, Role, RoleOverride

PRODUCT_MANAGER = "product-manager"
ARCHITECT = "architect"
SENIOR_DEVELOPER = "senior-developer"
CODE_REVIEW = "code-review"
INTEGRATION_ENGINEER = "integration-engineer"

DEFAULT_ROLES: tuple[Role, ...] = (
    Role(
        id=PRODUCT_MANAGER,
        display_name="Product Manager",
        description="Strategic orchestration and project management",
        capabilities=(
            "project-setup",
            "task-creation",
            "workflow-management",
            "stakeholder-communication",
            "requirement-gathering",
        ),
        responsibilities=(
            "Define project scope and requirements",
            "Create and manage task workflows",
            "Coordinate between different roles",
            "Ensure business value delivery",
        ),
        quality_gates=("requirements-complete", "stakeholder-approval", "scope-defined"),
        next_roles=(ARCHITECT,),
    ),
    Role(
        id=ARCHITECT,
        display_name="System Architect",
        description="Technical architecture and system design",
        capabilities=(
            "system-design",
            "architecture-planning",
            "technology-selection",
            "scalability-planning",
            "integration-design",
        ),
        responsibilities=(
            "Design system architecture",
            "Select appropriate technologies",
            "Plan integration points",
            "Ensure scalability and maintainability",
        ),
        quality_gates=(
            "architecture-approved",
            "technology-stack-selected",
            "integration-points-defined",
        ),
        next_roles=(SENIOR_DEVELOPER,),
    ),
    Role(
        id=SENIOR_DEVELOPER,
        display_name="Senior Developer",
        description="High-quality code implementation and testing",
        capabilities=(
            "code-implementation",
            "unit-testing",
            "integration-testing",
            "code-optimization",
            "documentation",
        ),
        responsibilities=(
            "Implement features according to architecture",
            "Write comprehensive tests",
            "Optimize code performance",
            "Create technical documentation",
        ),
        quality_gates=("code-complete", "tests-passing", "coverage-adequate", "performance-acceptable"),
        next_roles=(CODE_REVIEW,),
    ),
    Role(
        id=CODE_REVIEW,
        display_name="Code Reviewer",
        description="Quality assurance and security validation",
        capabilities=(
            "code-review",
            "security-validation",
            "performance-review",
            "quality-assessment",
            "approval-gating",
        ),
        responsibilities=(
            "Review code for quality and security",
            "Validate performance requirements",
            "Ensure coding standards compliance",
            "Approve or request changes",
        ),
        quality_gates=(
            "security-validated",
            "performance-acceptable",
            "standards-compliant",
            "approved-for-deployment",
        ),
        next_roles=(INTEGRATION_ENGINEER,),
    ),
    Role(
        id=INTEGRATION_ENGINEER,
        display_name="Integration Engineer",
        description="Deployment and integration management",
        capabilities=(
            "deployment",
            "integration-testing",
            "environment-management",
            "monitoring-setup",
            "delivery-preparation",
        ),
        responsibilities=(
            "Deploy code to target environments",
            "Perform integration testing",
            "Set up monitoring and logging",
            "Prepare for production delivery",
        ),
        quality_gates=(
            "deployment-successful",
            "integration-tests-passing",
            "monitoring-active",
            "production-ready",
        ),
        next_roles=(),
    ),
)

_CURSOR_OVERRIDES = MappingProxyType({
    SENIOR_DEVELOPER: RoleOverride(
        capabilities=(
            "Advanced TypeScript implementation",
            "React component architecture",
            "State management patterns",
            "API integration and data fetching",
            "Testing with Jest and React Testing Library",
        ),
        checklist=(
            "TypeScript types are comprehensive",
            "React components are properly structured",
            "API integration is robust",
            "Test coverage is > 80%",
        ),
        templates=(
            "cursor-react-component",
            "cursor-api-route",
            "cursor-testing-patterns",
        ),
        examples=(
            "React component with TypeScript",
            "API service with error handling",
            "Comprehensive test suite",
        ),
        best_practices=(
            "TypeScript strict mode",
            "Component composition",
            "Accessibility standards",
            "Comprehensive testing",
        ),
    ),
})

AGENT_PROFILES: tuple[AgentProfile, ...] = (
    AgentProfile(
        agent_type="cursor",
        supported_roles=(PRODUCT_MANAGER, ARCHITECT, SENIOR_DEVELOPER, CODE_REVIEW),
        capabilities=("code-generation", "refactoring", "debugging", "documentation", "testing"),
        limitations=("limited-deployment-capabilities", "no-direct-database-access"),
        templates=("react-component", "api-endpoint", "utility-function"),
        role_overrides=_CURSOR_OVERRIDES,
    ),
    AgentProfile(
        agent_type="copilot",
        supported_roles=(SENIOR_DEVELOPER, CODE_REVIEW),
        capabilities=("code-completion", "suggestion-generation", "pattern-recognition", "best-practices"),
        limitations=("no-workflow-management", "limited-architecture-planning"),
        templates=("code-snippet", "function-template", "class-template"),
    ),
    AgentProfile(
        agent_type="roocode",
        supported_roles=(ARCHITECT, SENIOR_DEVELOPER, INTEGRATION_ENGINEER),
        capabilities=("workflow-automation", "deployment-management", "integration-planning", "monitoring-setup"),
        limitations=("limited-code-generation", "no-quality-review"),
        templates=("deployment-workflow", "integration-template", "monitoring-setup"),
    ),
    AgentProfile(
        agent_type="kilocode",
        supported_roles=(PRODUCT_MANAGER, ARCHITECT, SENIOR_DEVELOPER),
        capabilities=("advanced-automation", "complex-workflow-management", "ai-integration", "performance-optimization"),
        limitations=("requires-high-compute", "complex-setup"),
        templates=("ai-workflow", "performance-optimization", "complex-automation"),
    ),
    AgentProfile(
        agent_type="general",
        supported_roles=(PRODUCT_MANAGER, ARCHITECT, SENIOR_DEVELOPER, CODE_REVIEW, INTEGRATION_ENGINEER),
    ),
)

ROLE_GUIDANCE = MappingProxyType({
    PRODUCT_MANAGER: (
        "Focus on business value and user requirements",
        "Ensure clear communication with stakeholders",
        "Define measurable success criteria",
        "Prioritize features based on impact",
    ),
    ARCHITECT: (
        "Design for scalability and maintainability",
        "Consider security implications early",
        "Plan for future extensibility",
        "Document architectural decisions",
    ),
    SENIOR_DEVELOPER: (
        "Write clean, self-documenting code",
        "Follow SOLID principles",
        "Write comprehensive tests",
        "Optimize for performance",
    ),
    CODE_REVIEW: (
        "Check for security vulnerabilities",
        "Validate code quality and standards",
        "Ensure proper error handling",
        "Verify test coverage",
    ),
    INTEGRATION_ENGINEER: (
        "Ensure smooth deployment process",
        "Set up proper monitoring",
        "Validate integration points",
        "Prepare rollback procedures",
    ),
})

ROLE_NEXT_STEPS = MappingProxyType({
    PRODUCT_MANAGER: ("Gather detailed requirements", "Create user stories", "Define acceptance criteria"),
    ARCHITECT: ("Create system diagram", "Select technology stack", "Define API contracts"),
    SENIOR_DEVELOPER: ("Implement core features", "Write unit tests", "Create integration tests"),
    CODE_REVIEW: ("Review code quality", "Check security issues", "Validate performance"),
    INTEGRATION_ENGINEER: ("Deploy to staging", "Run integration tests", "Monitor system health"),
})

ROLE_TEMPLATES = MappingProxyType({
    PRODUCT_MANAGER: ("project-setup", "requirements-gathering", "stakeholder-communication"),
    ARCHITECT: ("system-design", "api-specification", "database-schema"),
    SENIOR_DEVELOPER: ("component-implementation", "api-integration", "testing-strategy"),
    CODE_REVIEW: ("quality-checklist", "security-review", "performance-analysis"),
    INTEGRATION_ENGINEER: ("deployment-config", "monitoring-setup", "documentation"),
})

ROLE_EXAMPLES = MappingProxyType({
    PRODUCT_MANAGER: ("Project scope definition", "User story creation", "Acceptance criteria"),
    ARCHITECT: ("System architecture diagram", "API endpoint design", "Database schema"),
    SENIOR_DEVELOPER: ("Component implementation", "Service layer design", "Test cases"),
    CODE_REVIEW: ("Code quality report", "Security assessment", "Performance metrics"),
    INTEGRATION_ENGINEER: ("Deployment pipeline", "Environment configuration", "Monitoring setup"),
})

ROLE_BEST_PRACTICES = MappingProxyType({
    PRODUCT_MANAGER: ("Clear requirements", "Stakeholder alignment", "Progress tracking"),
    ARCHITECT: ("SOLID principles", "Scalable design", "Security first"),
    SENIOR_DEVELOPER: ("Clean code", "Test-driven development", "Performance optimization"),
    CODE_REVIEW: ("Thorough review", "Security focus", "Quality standards"),
    INTEGRATION_ENGINEER: ("Reliable deployment", "Comprehensive monitoring", "Documentation"),
})

ROLE_ANALYSIS_APPROACH = MappingProxyType({
    PRODUCT_MANAGER: "Focus on business impact and user value",
    ARCHITECT: "Focus on system design and technical architecture",
    SENIOR_DEVELOPER: "Focus on code quality and best practices",
    CODE_REVIEW: "Focus on security, performance, and maintainability",
    INTEGRATION_ENGINEER: "Focus on deployment and integration readiness",
})

ROLE_INSIGHTS = MappingProxyType({
    PRODUCT_MANAGER: (
        "Focus on user-facing features and business value",
        "Consider impact on user experience and product roadmap",
    ),
    ARCHITECT: (
        "Evaluate system scalability and maintainability",
        "Consider architectural patterns and design principles",
    ),
    SENIOR_DEVELOPER: (
        "Focus on code quality and development efficiency",
        "Consider team productivity and knowledge sharing",
    ),
    CODE_REVIEW: (
        "Focus on security vulnerabilities and performance issues",
        "Consider compliance and industry standards",
    ),
    INTEGRATION_ENGINEER: (
        "Focus on deployment readiness and integration points",
        "Consider CI/CD pipeline and monitoring requirements",
    ),
})
