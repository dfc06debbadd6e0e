"""Sample diffs shared by the tests."""

BACKEND_DIFF = """\
diff --git a/backend/a.go b/backend/a.go
index 1111111..2222222 100644
--- a/backend/a.go
+++ b/backend/a.go
@@ -1,3 +1,3 @@
 package main
-var x = 1
+var x = 2
 // end
"""

FRONTEND_DIFF = """\
diff --git a/frontend/b.ts b/frontend/b.ts
index 3333333..4444444 100644
--- a/frontend/b.ts
+++ b/frontend/b.ts
@@ -1,2 +1,2 @@
-export const y = 1;
+export const y = 2;
 export default y;
"""

DELETED_DIFF = """\
diff --git a/backend/old.go b/backend/old.go
deleted file mode 100644
index 5555555..0000000
--- a/backend/old.go
+++ /dev/null
@@ -1,2 +0,0 @@
-package main
-// gone
"""

ADDED_DIFF = """\
diff --git a/docs/new.md b/docs/new.md
new file mode 100644
index 0000000..6666666
--- /dev/null
+++ b/docs/new.md
@@ -0,0 +1,1 @@
+# New
"""

COMBINED_DIFF = BACKEND_DIFF + FRONTEND_DIFF

TRUNCATED_DIFF = """\
--- a/backend/a.go
+++ b/backend/a.go
@@ -1,5 +1,5 @@
-var x = 1
+var x = 2
"""
