from contextlib import AbstractContextManager


class UnitOfWork(AbstractContextManager):
   """One pooled connection, one transaction, one cursor.

   Commits on a clean exit, rolls back on an exception and always hands the
   connection back to the pool.
   """

   def __init__(self, connection):
      self.connection = connection
      self._cursor = None

   def __enter__(self):
      self._cursor = self.connection.cursor(dictionary=True)
      return self

   @property
   def cursor(self):
      return self._cursor

   def commit(self):
      self.connection.commit()

   def rollback(self):
      self.connection.rollback()

   def __exit__(self, exc_type, exc, tb):
      try:
         if exc:
            self.rollback()
         else:
            self.commit()
      finally:
         try:
            if self._cursor:
               self._cursor.close()
         finally:
            self.connection.close()
